import heapq
import itertools


class PQueue: # Ascending priority queue of tree nodes, keyed on node.frequency
    def __init__(self):
        self.queue = []

    def enqueue(self, node):
        # Insert before the first node whose frequency is >= the new one.
        # A newcomer therefore lands in front of existing nodes of equal frequency.
        for i, other in enumerate(self.queue):
            if other.frequency >= node.frequency:
                self.queue.insert(i, node)
                return
        self.queue.append(node)

    def dequeue(self): # lowest frequency first, None when empty
        if not self.queue:
            return None
        return self.queue.pop(0)

    def size(self) -> int:
        return len(self.queue)

    def __len__(self) -> int:
        return self.size()


class HeapPQueue(PQueue):
    """
    Same ordering as PQueue in O(log n) per operation.
    Equal frequencies come out newest first, so the key is (frequency, -sequence).
    """
    def __init__(self):
        super().__init__()
        self._seq = itertools.count()

    def enqueue(self, node):
        heapq.heappush(self.queue, (node.frequency, -next(self._seq), node))

    def dequeue(self):
        if not self.queue:
            return None
        return heapq.heappop(self.queue)[2]
