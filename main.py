import logging
from time import sleep, perf_counter

from lazy import LazyIterator
from utils import get_performance_summary, process_chunking, process_pagination

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def expensive_transform(x):
    # Simulate a costly step so laziness is visible
    print(f"  computing f({x}) ...")
    sleep(0.2)  # pretend this is expensive
    return x * x


print("\n--- Demo: laziness (no work until pulled) ---")
pipeline = (
    LazyIterator.range(1, 10_000)
    .map(expensive_transform)   # expensive; watch when it runs
    .filter(lambda v: v % 2 == 0)
    .skip(3)
    .take(5)
)

print("Constructed pipeline. No output yet (nothing computed).")
print("\nCollecting (should compute only what's needed for 5 items):")
t0 = perf_counter()
out = pipeline.collect()
t1 = perf_counter()
print(f"Result: {out}")
print(f"Time: {t1 - t0:.2f}s\n")

print("--- Demo: peek does not consume ---")
numbers = LazyIterator.of(10, 20, 30)
print(f"peek: {numbers.peek()}  peek again: {numbers.peek()}  next: {numbers.next()}")
print(f"rest: {numbers.collect()}\n")

print("--- Demo: chunking an infinite source ---")
chunks = LazyIterator.range().map(expensive_transform).chunk(4).take(2)
print("Two chunks of 4 (should compute exactly 8 items):")
for c in chunks:
    print("  chunk:", c)
print()

print("--- Demo: cycle, join and scan ---")
print("cycle:", LazyIterator.of(1, 2).cycle().take(11).collect())
print("join:", LazyIterator.from_("abc").join("-").collect_string())
fibonacci = (
    LazyIterator.range()
    .scan(lambda pair, _: (pair[1], pair[0] + pair[1]), (0, 1))
    .map(lambda pair: pair[0])
    .take(10)
    .collect()
)
print("fibonacci:", fibonacci, "\n")

print("--- Demo: clone keeps the original usable ---")
source = LazyIterator.of(1, 2, 3, 4)
source.next()
copy = source.clone()
print(f"original: {source.collect()}  clone: {copy.collect()}\n")

print("--- Demo: declarative pagination and chunking ---")
page = process_pagination(range(1, 50), {
    "page_number": 2,
    "page_size": 5,
    "operations": [{"type": "filter", "fn": lambda x: x % 3 == 0}],
})
print(f"page 2: {page['page_data']} (has next: {page['has_next_page']})")
chunked = process_chunking(range(1, 12), {"chunk_size": 4})
print(f"chunks: {chunked['chunks']}")
logger.info(f"Performance summary: {get_performance_summary()}")
