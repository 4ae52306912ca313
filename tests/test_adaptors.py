import math
import pytest
from lazy import LazyIterator
from protocols import register_atomic


class TestSkipTake:
    """Test step_by / skip / take and their counters"""

    def test_step_by(self):
        assert LazyIterator.from_([1, 2, 3, 4]).step_by(2).collect() == [1, 3]
        assert LazyIterator.range(0, 10).step_by(3).collect() == [0, 3, 6, 9]

    def test_step_by_one_is_identity(self):
        assert LazyIterator.of(1, 2, 3).step_by(1).collect() == [1, 2, 3]

    def test_step_by_does_not_pull_ahead(self, counting_iterator):
        """Discarding happens before the next yield, not after the current one"""
        source = counting_iterator(range(10))
        it = LazyIterator.from_(source).step_by(3)
        assert it.next().value == 0
        assert source.pulls == 1, f"Expected 1 pull, got {source.pulls}"

    def test_step_by_rejects_zero(self):
        with pytest.raises(ValueError):
            LazyIterator.of(1).step_by(0)

    def test_skip(self):
        assert LazyIterator.from_([1, 2, 3, 4]).skip(2).collect() == [3, 4]

    def test_skip_past_end_stays_done(self):
        it = LazyIterator.of(1, 2).skip(5)
        assert it.next().done
        assert it.next().done

    def test_skip_long_run_without_recursion(self):
        """Skipping far more values than the recursion limit works"""
        assert LazyIterator.range().skip(100_000).first() == 100_000

    def test_take(self):
        assert LazyIterator.from_([1, 2, 3, 4]).take(2).collect() == [1, 2]

    def test_take_caps_infinite(self):
        it = LazyIterator.repeat(7).take(2)
        assert it.collect() == [7, 7]
        assert it.next().done, "take must stay done once its count reaches 0"

    def test_take_prefix_property(self):
        """take(k) returns exactly the first k values of the unrestricted result"""
        chain = lambda: LazyIterator.range(0, 30).map(lambda x: x * 3).filter(lambda x: x % 2 == 0)
        full = chain().collect()
        for k in range(len(full) + 1):
            assert chain().take(k).collect() == full[:k], f"Prefix mismatch for k={k}"

    def test_take_pulls_only_what_it_needs(self, counting_iterator):
        source = counting_iterator(range(100))
        LazyIterator.from_(source).take(3).collect()
        assert source.pulls == 3, f"Expected 3 pulls, got {source.pulls}"


class TestWhileAdaptors:
    """Test skip_while / take_while switch points"""

    def test_skip_while(self):
        assert LazyIterator.from_([1, 2, 3, 4]).skip_while(lambda n: n < 3).collect() == [3, 4]

    def test_skip_while_passes_later_matches(self):
        """After the switch point, values satisfying pred again are kept"""
        result = LazyIterator.of(1, 2, 5, 1, 2).skip_while(lambda n: n < 3).collect()
        assert result == [5, 1, 2]

    def test_skip_while_first_value_fails_pred(self):
        pred = lambda n: n % 2 == 0
        for data in ([2, 4, 5, 6], [1, 2], [2, 4]):
            head = LazyIterator.from_(data).skip_while(pred).next()
            assert head.done or not pred(head.value), f"Head {head} must not satisfy pred"

    def test_skip_while_all_skipped(self):
        assert LazyIterator.of(1, 2).skip_while(lambda n: True).collect() == []

    def test_take_while(self):
        assert LazyIterator.from_([1, 2, 3, 4]).take_while(lambda n: n < 3).collect() == [1, 2]

    def test_take_while_drops_failing_value_and_stays_done(self):
        source = LazyIterator.of(1, 5, 2, 3)
        it = source.take_while(lambda n: n < 3)
        assert it.collect() == [1]
        assert it.next().done
        assert source.collect() == [2, 3], "The failing value is consumed and dropped"

    def test_take_while_infinite(self):
        assert LazyIterator.range().take_while(lambda n: n * n < 20).collect() == [0, 1, 2, 3, 4]


class TestChunkEnumerate:
    """Test chunk and enumerate"""

    def test_chunk_with_residue(self):
        result = LazyIterator.from_([1, 2, 3, 4, 5, 6, 7, 8, 9]).chunk(2).collect()
        assert result == [[1, 2], [3, 4], [5, 6], [7, 8], [9]]

    def test_chunk_exact_division(self):
        """No empty trailing chunk when the length divides evenly"""
        assert LazyIterator.range(0, 6).chunk(3).collect() == [[0, 1, 2], [3, 4, 5]]

    @pytest.mark.parametrize("length,size", [(0, 3), (1, 3), (7, 3), (9, 3), (10, 1), (4, 10)])
    def test_chunk_sizes(self, length, size):
        chunks = LazyIterator.range(0, length).chunk(size).collect()
        assert len(chunks) == math.ceil(length / size)
        assert all(len(c) == size for c in chunks[:-1])
        if chunks:
            expected_last = length % size or size
            assert len(chunks[-1]) == expected_last

    def test_chunk_rejects_zero(self):
        with pytest.raises(ValueError):
            LazyIterator.of(1).chunk(0)

    def test_enumerate(self):
        result = LazyIterator.from_([1, 2, 3, 4]).enumerate().collect()
        assert result == [(0, 1), (1, 2), (2, 3), (3, 4)]

    def test_enumerate_after_skip(self):
        result = LazyIterator.from_("abcd").skip(2).enumerate().collect()
        assert result == [(0, "c"), (1, "d")]


class TestMultiSource:
    """Test concat / zip"""

    def test_concat(self):
        result = LazyIterator.from_([1, 2, 3, 4]).concat([5, 6, 7, 8]).collect()
        assert result == [1, 2, 3, 4, 5, 6, 7, 8]

    def test_concat_many_and_empty(self):
        result = LazyIterator.of().concat([], iter([1]), LazyIterator.of(2, 3), "").collect()
        assert result == [1, 2, 3]

    def test_concat_rejects_non_iterable(self):
        with pytest.raises(TypeError):
            LazyIterator.of(1).concat(5)

    def test_zip(self):
        result = (
            LazyIterator.from_([1, 2, 3, 4])
            .zip(["a", "b", "c", "d"], [True, False, True, False])
            .collect()
        )
        assert result == [(1, "a", True), (2, "b", False), (3, "c", True), (4, "d", False)]

    @pytest.mark.parametrize("lengths", [(3, 5), (5, 3), (0, 4), (4, 4, 2)])
    def test_zip_length_is_minimum(self, lengths):
        primary, *others = [range(n) for n in lengths]
        result = LazyIterator.from_(primary).zip(*others).collect()
        assert len(result) == min(lengths)

    def test_zip_with_infinite(self):
        result = LazyIterator.from_("ab").zip(LazyIterator.range(), LazyIterator.repeat(None)).collect()
        assert result == [("a", 0, None), ("b", 1, None)]

    def test_zip_stops_pulling_after_primary_ends(self, counting_iterator):
        other = counting_iterator(range(10))
        LazyIterator.of(1, 2).zip(other).collect()
        assert other.pulls == 2, f"Expected 2 pulls, got {other.pulls}"


class TestCycle:
    """Test cycle caching and replay"""

    def test_cycle(self):
        result = LazyIterator.from_([1, 2]).cycle().take(11).collect()
        assert result == [1, 2, 1, 2, 1, 2, 1, 2, 1, 2, 1]

    def test_cycle_empty_is_done(self):
        it = LazyIterator.of().cycle()
        assert it.next().done
        assert it.next().done

    def test_cycle_pulls_upstream_once(self, counting_iterator):
        source = counting_iterator([1, 2, 3])
        LazyIterator.from_(source).cycle().take(10).collect()
        assert source.pulls == 4, f"Upstream should be drained once (3 values + end), got {source.pulls}"

    def test_cycle_infinite_passes_through(self):
        assert LazyIterator.range().cycle().take(4).collect() == [0, 1, 2, 3]


class TestMapFilterScan:
    """Test map / filter / scan"""

    def test_map(self):
        assert LazyIterator.from_([1, 2, 3, 4]).map(lambda n: n * 2).collect() == [2, 4, 6, 8]

    def test_filter(self):
        assert LazyIterator.from_([1, 2, 3, 4]).filter(lambda n: n % 2 == 0).collect() == [2, 4]

    def test_filter_long_rejected_run(self):
        """A long run of rejected values does not grow the call stack"""
        result = LazyIterator.range(0, 200_000).filter(lambda n: n > 199_998).collect()
        assert result == [199_999]

    def test_scan_with_seed(self):
        result = LazyIterator.from_([1, 2, 3, 4]).scan(lambda acc, n: acc + n, 0).collect()
        assert result == [0, 1, 3, 6, 10]

    def test_scan_without_seed(self):
        result = LazyIterator.from_([1, 2, 3, 4]).scan(lambda acc, n: acc + n).collect()
        assert result == [1, 3, 6, 10]

    def test_scan_first_value_not_passed_to_fn(self):
        calls = []

        def add(acc, n):
            calls.append((acc, n))
            return acc + n

        LazyIterator.of(5, 6).scan(add).collect()
        assert calls == [(5, 6)]

    def test_scan_empty(self):
        assert LazyIterator.of().scan(lambda a, b: a + b).collect() == []
        assert LazyIterator.of().scan(lambda a, b: a + b, 9).collect() == [9]

    def test_fibonacci(self):
        """Fibonacci via scan over an unbounded range terminates with take"""
        result = (
            LazyIterator.range()
            .scan(lambda pair, _: (pair[1], pair[0] + pair[1]), (0, 1))
            .map(lambda pair: pair[0])
            .take(10)
            .collect()
        )
        assert result == [0, 1, 1, 2, 3, 5, 8, 13, 21, 34]


class TestFlatten:
    """Test flatten / flat_map"""

    def test_flatten_infinite_depth(self):
        data = [[1, 2], 3, [4], [5, [6, 7], 8, [[9], 10], 11], [12, 13, 14], 15]
        assert LazyIterator.from_(data).flatten(math.inf).collect() == list(range(1, 16))

    def test_flatten_depth_one(self):
        data = [[1, 2], [3, 4], [[5, 6, 7, 8]], 9, 10]
        assert LazyIterator.from_(data).flatten(1).collect() == [1, 2, 3, 4, [5, 6, 7, 8], 9, 10]

    def test_flatten_default_depth_is_one(self):
        assert LazyIterator.of([1, [2]]).flatten().collect() == [1, [2]]

    def test_flatten_depth_two(self):
        data = [[1, 2], [3, 4], [[5, 6, 7, 8]], 9, 10]
        assert LazyIterator.from_(data).flatten(2).collect() == list(range(1, 11))

    def test_flatten_depth_zero(self):
        assert LazyIterator.of([1], [2]).flatten(0).collect() == [[1], [2]]

    def test_flatten_keeps_strings_whole(self):
        assert LazyIterator.of(["ab", ["cd"]], "ef").flatten(math.inf).collect() == ["ab", "cd", "ef"]

    def test_flatten_nested_iterators(self):
        data = [iter([1, 2]), LazyIterator.of(3, LazyIterator.of(4)), (x for x in [5])]
        assert LazyIterator.from_(data).flatten(math.inf).collect() == [1, 2, 3, 4, 5]

    def test_flatten_skips_empty_sequences(self):
        assert LazyIterator.of([], [[]], [1], []).flatten(math.inf).collect() == [1]

    def test_registered_atomic_types_are_not_expanded(self):
        @register_atomic
        class Word(tuple):
            pass

        data = [Word("ab"), ("c", "d")]
        result = LazyIterator.from_(data).flatten(math.inf).collect()
        assert result == [Word("ab"), "c", "d"]

    def test_flat_map(self):
        result = (
            LazyIterator.from_([3, 4, 5])
            .flat_map(lambda n: LazyIterator.range(1, 4).map(lambda i: n * i))
            .collect()
        )
        assert result == [3, 6, 9, 4, 8, 12, 5, 10, 15]

    def test_flat_map_scalar_results(self):
        result = LazyIterator.of(1, 2, 3).flat_map(lambda n: [n, n] if n % 2 else n * 10).collect()
        assert result == [1, 1, 20, 3, 3]

    def test_flat_map_flattens_one_level_only(self):
        assert LazyIterator.of(1).flat_map(lambda n: [[n]]).collect() == [[1]]


class TestJoin:
    """Test join / join_with"""

    def test_join(self):
        assert LazyIterator.from_([1, 2, 3, 4]).join(5).collect() == [1, 5, 2, 5, 3, 5, 4]

    def test_join_single_and_empty(self):
        assert LazyIterator.of(1).join(0).collect() == [1]
        assert LazyIterator.of().join(0).collect() == []

    def test_join_into_string(self):
        assert LazyIterator.from_("abc").join(", ").collect_string() == "a, b, c"

    def test_join_with(self):
        result = LazyIterator.from_([1, 2, 3, 4]).join_with([5, 6]).collect()
        assert result == [1, 5, 6, 2, 5, 6, 3, 5, 6, 4]

    def test_join_with_one_shot_separator(self):
        """A one-shot separator is consumed once and replayed from cache"""
        separator = iter(["-", "+"])
        result = LazyIterator.of("a", "b", "c").join_with(separator).collect()
        assert result == ["a", "-", "+", "b", "-", "+", "c"]

    def test_join_with_empty_separator(self):
        assert LazyIterator.of(1, 2).join_with([]).collect() == [1, 2]

    def test_join_with_infinite_separator_first_gap_only(self):
        result = LazyIterator.of(1, 2).join_with(LazyIterator.range()).take(5).collect()
        assert result == [1, 0, 1, 2, 3]


class TestEach:
    """Test each side effects"""

    def test_each_passes_values_through(self, call_log):
        result = LazyIterator.from_([1, 2, 3, 4]).each(call_log).collect()
        assert result == [1, 2, 3, 4]
        assert call_log.calls == [1, 2, 3, 4]

    def test_each_and_for_each_counts_match(self):
        counts = {"each": 0, "for_each": 0}

        def bump(name):
            def inner(_):
                counts[name] += 1
            return inner

        LazyIterator.from_([1, 2, 3, 4]).each(bump("each")).for_each(bump("for_each"))
        assert counts == {"each": 4, "for_each": 4}

    def test_each_not_called_on_done(self, call_log):
        it = LazyIterator.of().each(call_log)
        it.next()
        it.next()
        assert call_log.calls == []
