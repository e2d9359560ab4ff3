import unittest
from collections import Counter

import huffman as huff
from huffman import Branch, Leaf
from pqueue import HeapPQueue


def count_nodes(node):
    """Returns (leaves, branches)"""
    if isinstance(node, Leaf):
        return 1, 0
    leaves, branches = 0, 1
    for child in (node.left, node.right):
        if child is not None:
            l, b = count_nodes(child)
            leaves += l
            branches += b
    return leaves, branches


def assert_freq_sums(test, node):
    if isinstance(node, Branch):
        test.assertEqual(node.frequency, node.left.frequency + node.right.frequency)
        assert_freq_sums(test, node.left)
        assert_freq_sums(test, node.right)


SAMPLES = [
    "abracadabra",
    "ab",
    "mississippi river",
    "The quick brown fox jumps over the lazy dog",
    "aaaaaaaaaabbbbbcccd",
    "Съешь же ещё этих мягких французских булок",
]


class TestFreqTable(unittest.TestCase):
    def test_counts(self):
        for s in SAMPLES:
            self.assertEqual(huff.freq_table(s), dict(Counter(s)))

    def test_abracadabra(self):
        self.assertEqual(huff.freq_table("abracadabra"), {"a": 5, "b": 2, "r": 2, "c": 1, "d": 1})

    def test_empty_and_none_are_absent(self):
        self.assertIsNone(huff.freq_table(""))
        self.assertIsNone(huff.freq_table(None))


class TestTreeFromFreqTable(unittest.TestCase):
    def test_absent_table(self):
        self.assertIsNone(huff.tree_from_freq_table(None))

    def test_empty_table(self):
        # zero entries is a separate case from no table at all
        self.assertIsNone(huff.tree_from_freq_table({}))

    def test_single_entry_is_leaf(self):
        tree = huff.tree_from_freq_table({"x": 4})
        self.assertIsInstance(tree, Leaf)
        self.assertEqual(tree.symbol, "x")
        self.assertEqual(tree.frequency, 4)

    def test_leaf_and_branch_counts(self):
        for s in SAMPLES:
            ft = huff.freq_table(s)
            leaves, branches = count_nodes(huff.tree_from_freq_table(ft))
            self.assertEqual(leaves, len(ft))
            self.assertEqual(branches, len(ft) - 1)

    def test_branch_frequency_is_sum_of_children(self):
        for s in SAMPLES:
            tree = huff.tree_from_freq_table(huff.freq_table(s))
            self.assertEqual(tree.frequency, len(s))
            assert_freq_sums(self, tree)

    def test_first_dequeued_goes_left(self):
        tree = huff.tree_from_freq_table({"a": 1, "b": 2})
        self.assertEqual(tree.left.symbol, "a")
        self.assertEqual(tree.right.symbol, "b")
        self.assertEqual(tree.frequency, 3)

    def test_equal_frequencies_are_reproducible(self):
        ft = {"d": 1, "b": 1, "c": 1, "a": 1}
        shuffled = {"a": 1, "c": 1, "b": 1, "d": 1}
        code1 = huff.build_code(huff.tree_from_freq_table(ft))
        code2 = huff.build_code(huff.tree_from_freq_table(shuffled))
        self.assertEqual(code1, code2)

    def test_heap_queue_builds_same_tree(self):
        for s in SAMPLES:
            ft = huff.freq_table(s)
            self.assertEqual(
                huff.build_code(huff.tree_from_freq_table(ft)),
                huff.build_code(huff.tree_from_freq_table(ft, HeapPQueue)),
            )


class TestBuildCode(unittest.TestCase):
    def test_traverse_directions(self):
        tree = Branch(3, Leaf("a", 1), Branch(2, Leaf("b", 1), Leaf("c", 1)))
        self.assertEqual(huff.build_code(tree), {
            "a": [False],
            "b": [True, False],
            "c": [True, True],
        })

    def test_leaf_does_not_extend_path(self):
        self.assertEqual(Leaf("z", 1).traverse([True, False]), {"z": [True, False]})

    def test_single_leaf_has_empty_code(self):
        self.assertEqual(huff.build_code(Leaf("a", 3)), {"a": []})

    def test_absent_tree_raises(self):
        with self.assertRaises(huff.EmptyInputError):
            huff.build_code(None)

    def test_prefix_free(self):
        for s in SAMPLES:
            code = huff.build_code(huff.tree_from_freq_table(huff.freq_table(s)))
            for a, ca in code.items():
                for b, cb in code.items():
                    if a != b:
                        self.assertNotEqual(ca, cb[:len(ca)], f"{a!r} is a prefix of {b!r}")


class TestEncode(unittest.TestCase):
    def test_abracadabra(self):
        coding = huff.encode("abracadabra")
        self.assertEqual({c: huff.bits_to_str(b) for c, b in coding.code.items()}, {
            "a": "0",
            "b": "10",
            "r": "111",
            "c": "1101",
            "d": "1100",
        })
        self.assertEqual(huff.bits_to_str(coding.data), "01011101101011000101110")
        self.assertEqual(coding.length, 11)

    def test_bit_count_matches_code_lengths(self):
        for s in SAMPLES:
            coding = huff.encode(s)
            ft = huff.freq_table(s)
            self.assertEqual(len(coding.data), sum(n * len(coding.code[c]) for c, n in ft.items()))
            self.assertTrue(all(len(bits) >= 1 for bits in coding.code.values()))

    def test_empty_input_raises(self):
        with self.assertRaises(huff.EmptyInputError):
            huff.encode("")
        with self.assertRaises(huff.EmptyInputError):
            huff.encode(None)

    def test_empty_input_error_is_value_error(self):
        self.assertTrue(issubclass(huff.EmptyInputError, ValueError))

    def test_single_symbol(self):
        coding = huff.encode("aaa")
        self.assertEqual(coding.code, {"a": []})
        self.assertEqual(coding.data, [])
        self.assertEqual(coding.length, 3)


class TestTreeFromCode(unittest.TestCase):
    def test_same_leaf_positions(self):
        for s in SAMPLES:
            code = huff.encode(s).code
            self.assertEqual(huff.build_code(huff.tree_from_code(code)), code)

    def test_frequencies_are_zero(self):
        tree = huff.tree_from_code(huff.encode("abracadabra").code)
        stack = [tree]
        while stack:
            node = stack.pop()
            self.assertEqual(node.frequency, 0)
            if isinstance(node, Branch):
                stack.extend(c for c in (node.left, node.right) if c is not None)

    def test_shared_code_raises(self):
        with self.assertRaises(huff.MalformedCodeError):
            huff.tree_from_code({"a": [True], "b": [True]})

    def test_path_through_leaf_raises(self):
        with self.assertRaises(huff.MalformedCodeError):
            huff.tree_from_code({"a": [False], "b": [False, True]})

    def test_leaf_over_branch_raises(self):
        # same codes as above, longer one first
        with self.assertRaises(huff.MalformedCodeError):
            huff.tree_from_code({"a": [False, True], "b": [False]})

    def test_prefix_violation_raises_in_either_order(self):
        code = {"x": [True, True, False], "y": [True]}
        for order in (code, dict(reversed(list(code.items())))):
            with self.assertRaises(huff.MalformedCodeError):
                huff.tree_from_code(order)

    def test_empty_code(self):
        tree = huff.tree_from_code({})
        self.assertIsNone(tree.left)
        self.assertIsNone(tree.right)


class TestDecode(unittest.TestCase):
    def test_round_trip(self):
        for s in SAMPLES:
            coding = huff.encode(s)
            self.assertEqual(huff.decode(coding.code, coding.data), s)
            self.assertEqual(coding.decode(strict=True), s)

    def test_round_trip_with_heap_queue(self):
        coding = huff.encode("mississippi river", HeapPQueue)
        self.assertEqual(huff.decode(coding.code, coding.data), "mississippi river")

    def test_known_bits(self):
        code = {"a": [False], "b": [True, False], "c": [True, True]}
        self.assertEqual(huff.decode(code, huff.str_to_bits("010110")), "abca")

    def test_truncated_data_is_dropped(self):
        coding = huff.encode("abracadabra")
        self.assertEqual(huff.decode(coding.code, coding.data[:-2]), "abracadab")

    def test_truncated_data_strict(self):
        coding = huff.encode("abracadabra")
        with self.assertRaises(huff.TruncatedDataError):
            huff.decode(coding.code, coding.data[:-2], strict=True)

    def test_missing_path_raises(self):
        code = {"a": [False], "b": [True, False]}
        with self.assertRaises(huff.MalformedCodeError):
            huff.decode(code, [True, True])

    def test_data_without_code_raises(self):
        with self.assertRaises(huff.MalformedCodeError):
            huff.decode({}, [False])

    def test_empty_data(self):
        self.assertEqual(huff.decode(huff.encode("abc").code, []), "")

    def test_single_symbol_needs_length(self):
        coding = huff.encode("aaa")
        self.assertEqual(huff.decode(coding.code, coding.data), "")
        self.assertEqual(huff.decode(coding.code, coding.data, length=3), "aaa")
        self.assertEqual(coding.decode(), "aaa")

    def test_single_symbol_with_bits_raises(self):
        with self.assertRaises(huff.MalformedCodeError):
            huff.decode({"a": []}, [True])


class TestBitHelpers(unittest.TestCase):
    def test_bits_to_str(self):
        self.assertEqual(huff.bits_to_str([True, False, False, True]), "1001")
        self.assertEqual(huff.bits_to_str([]), "")

    def test_str_to_bits(self):
        self.assertEqual(huff.str_to_bits("0110"), [False, True, True, False])

    def test_str_to_bits_rejects_other_characters(self):
        with self.assertRaises(ValueError):
            huff.str_to_bits("012")


if __name__ == "__main__":
    unittest.main()
