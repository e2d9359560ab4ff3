from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Union

from pqueue import PQueue

Bits = List[bool]
CodeMap = Dict[str, Bits]


# Errors

class HuffmanError(ValueError):
    pass

class EmptyInputError(HuffmanError): # nothing to build a table/tree/code from
    pass

class MalformedCodeError(HuffmanError): # code map and data do not agree
    pass

class TruncatedDataError(HuffmanError): # data ends in the middle of a code
    pass


# Tree nodes

class Leaf: # Terminal node, holds a symbol and its frequency
    def __init__(self, symbol: str, frequency: int):
        self.symbol = symbol
        self.frequency = frequency

    def traverse(self, path: Bits) -> CodeMap:
        # the parent branch already appended the bit leading here
        return {self.symbol: path}

    def __repr__(self) -> str:
        return f"Leaf({self.symbol!r}, {self.frequency})"


class Branch: # Internal node, frequency = left + right when built from data
    def __init__(self, frequency: int, left: Optional["Node"] = None, right: Optional["Node"] = None):
        self.frequency = frequency
        self.left = left # False / 0
        self.right = right # True / 1

    def traverse(self, path: Bits) -> CodeMap:
        code: CodeMap = {}
        # children are only missing while a tree is rebuilt from a code
        if self.left is not None:
            code.update(self.left.traverse(path + [False]))
        if self.right is not None:
            code.update(self.right.traverse(path + [True]))
        return code

    def __repr__(self) -> str:
        return f"Branch({self.frequency}, {self.left!r}, {self.right!r})"


Node = Union[Leaf, Branch]


@dataclass
class HuffmanCoding:
    code: CodeMap
    data: Bits
    length: int = 0 # number of symbols encoded

    def decode(self, strict: bool = False) -> str:
        return decode(self.code, self.data, length=self.length, strict=strict)


# Building

def freq_table(text: Optional[str]) -> Optional[Dict[str, int]]:
    """
    Count every character of `text`
    Returns None (not {}) when the input is None or empty
    """
    if not text:
        return None
    ft: Dict[str, int] = {}
    for ch in text:
        ft[ch] = ft.get(ch, 0) + 1
    return ft


def tree_from_freq_table(freq_table: Optional[Dict[str, int]],
                         queue_factory: Callable[[], PQueue] = PQueue) -> Optional[Node]:
    """
    Greedy Huffman construction: merge the two lowest-frequency nodes until one is left.
    The node dequeued first becomes the left child.
    """
    if freq_table is None:
        return None

    queue = queue_factory()
    # Leaves go in by code point so equal frequencies always break the same way
    for symbol in sorted(freq_table):
        queue.enqueue(Leaf(symbol, freq_table[symbol]))

    while queue.size() > 1:
        a = queue.dequeue()
        b = queue.dequeue()
        queue.enqueue(Branch(a.frequency + b.frequency, a, b))

    return queue.dequeue() # None for an empty table


def build_code(tree: Optional[Node]) -> CodeMap:
    if tree is None:
        raise EmptyInputError("cannot build a code from an empty tree")
    return tree.traverse([])


def encode(text: Optional[str], queue_factory: Callable[[], PQueue] = PQueue) -> HuffmanCoding:
    if not text:
        raise EmptyInputError("cannot encode empty input")

    tree = tree_from_freq_table(freq_table(text), queue_factory)
    code = build_code(tree)

    data: Bits = []
    for ch in text:
        data.extend(code[ch])

    return HuffmanCoding(code, data, len(text))


# Decoding

def tree_from_code(code: CodeMap) -> Branch:
    """
    Rebuild a tree with the same leaf positions as the one that produced `code`.
    Frequencies can't be recovered, every node gets 0.
    """
    root = Branch(0)
    for symbol, path in code.items():
        node = root
        for i, bit in enumerate(path):
            child = node.right if bit else node.left
            if i == len(path) - 1:
                # last bit: the slot must be free, or already hold this symbol
                if isinstance(child, Branch):
                    raise MalformedCodeError(f"code for {symbol!r} is a prefix of another code")
                if isinstance(child, Leaf) and child.symbol != symbol:
                    raise MalformedCodeError(
                        f"{symbol!r} and {child.symbol!r} share the same code")
                if bit:
                    node.right = Leaf(symbol, 0)
                else:
                    node.left = Leaf(symbol, 0)
                break

            if child is None:
                child = Branch(0)
                if bit:
                    node.right = child
                else:
                    node.left = child
            elif isinstance(child, Leaf):
                raise MalformedCodeError(
                    f"code for {symbol!r} runs through the leaf for {child.symbol!r}")
            node = child
    return root


def _single_symbol(code: CodeMap) -> Optional[str]:
    # one-symbol alphabets get the empty code, there is nothing to walk
    if len(code) == 1:
        symbol, path = next(iter(code.items()))
        if not path:
            return symbol
    return None


def decode(code: CodeMap, data: Bits, length: Optional[int] = None, strict: bool = False) -> str:
    """
    Walk the rebuilt tree bit by bit, emitting a symbol at every leaf.
    `length` is only needed for single-symbol codes, where the data is empty.
    With strict=True a trailing partial code raises TruncatedDataError,
    otherwise it is dropped.
    """
    symbol = _single_symbol(code)
    if symbol is not None:
        if data:
            raise MalformedCodeError(f"single-symbol code for {symbol!r} has no bits to read")
        return symbol * (length or 0)

    root = tree_from_code(code)
    out: List[str] = []
    node: Node = root
    for pos, bit in enumerate(data):
        child = node.right if bit else node.left
        if child is None:
            raise MalformedCodeError(f"bit {pos} leads to a path missing from the code")
        if isinstance(child, Leaf):
            out.append(child.symbol)
            node = root
        else:
            node = child

    if strict and node is not root:
        raise TruncatedDataError("data ends in the middle of a code")
    return "".join(out)


# Helpers

def bits_to_str(bits: Bits) -> str:
    return "".join("1" if b else "0" for b in bits)

def str_to_bits(s: str) -> Bits:
    bits: Bits = []
    for ch in s:
        if ch not in "01":
            raise ValueError(f"not a bit: {ch!r}")
        bits.append(ch == "1")
    return bits
