"""
Augmented AVL interval tree.

Each node carries the maximum end of its subtree, so intersection
queries skip subtrees that end before the query starts. Intervals are
closed: [start, end] intersects [a, b] iff start <= b and end >= a.
"""

from typing import Any, Generic, Iterator, Optional, TypeVar

# Any totally ordered coordinate (datetime in practice)
T = TypeVar('T')


class IntervalNode(Generic[T]):
    """Tree node; also the handle returned by insert() and taken by remove()."""
    __slots__ = ['start', 'end', 'data', 'left', 'right', 'parent', 'max_end', 'height']

    def __init__(self, start: T, end: T, data: Any):
        self.start: T = start
        self.end: T = end
        self.data: Any = data
        self.left: Optional['IntervalNode[T]'] = None
        self.right: Optional['IntervalNode[T]'] = None
        self.parent: Optional['IntervalNode[T]'] = None
        self.max_end: T = end
        self.height: int = 1


class IntervalTree(Generic[T]):
    def __init__(self):
        self.root: Optional[IntervalNode[T]] = None
        self._size = 0

    def __len__(self) -> int:
        return self._size

    # --- Balancing ---

    @staticmethod
    def _height(node: Optional[IntervalNode[T]]) -> int:
        return node.height if node else 0

    def _refresh(self, node: IntervalNode[T]) -> None:
        node.height = 1 + max(self._height(node.left), self._height(node.right))
        max_end = node.end
        for child in (node.left, node.right):
            if child is not None and child.max_end > max_end:
                max_end = child.max_end
        node.max_end = max_end

    def _replace_child(self, parent: Optional[IntervalNode[T]], old: IntervalNode[T],
                       new: Optional[IntervalNode[T]]) -> None:
        if parent is None:
            self.root = new
        elif parent.left is old:
            parent.left = new
        else:
            parent.right = new
        if new is not None:
            new.parent = parent

    def _rotate_left(self, x: IntervalNode[T]) -> None:
        y = x.right
        x.right = y.left
        if y.left is not None:
            y.left.parent = x
        self._replace_child(x.parent, x, y)
        y.left = x
        x.parent = y
        self._refresh(x)
        self._refresh(y)

    def _rotate_right(self, y: IntervalNode[T]) -> None:
        x = y.left
        y.left = x.right
        if x.right is not None:
            x.right.parent = y
        self._replace_child(y.parent, y, x)
        x.right = y
        y.parent = x
        self._refresh(y)
        self._refresh(x)

    def _rebalance_upwards(self, node: Optional[IntervalNode[T]]) -> None:
        while node is not None:
            self._refresh(node)
            balance = self._height(node.left) - self._height(node.right)
            if balance > 1:
                if self._height(node.left.left) < self._height(node.left.right):
                    self._rotate_left(node.left)
                self._rotate_right(node)
                node = node.parent
            elif balance < -1:
                if self._height(node.right.right) < self._height(node.right.left):
                    self._rotate_right(node.right)
                self._rotate_left(node)
                node = node.parent
            node = node.parent

    # --- Mutation ---

    def insert(self, start: T, end: T, data: Any) -> IntervalNode[T]:
        node = IntervalNode(start, end, data)
        self._size += 1
        if self.root is None:
            self.root = node
            return node

        parent = self.root
        while True:
            branch = 'left' if start < parent.start else 'right'
            child = getattr(parent, branch)
            if child is None:
                setattr(parent, branch, node)
                node.parent = parent
                break
            parent = child

        self._rebalance_upwards(parent)
        return node

    def remove(self, node: IntervalNode[T]) -> None:
        """
        Remove a node previously returned by insert().

        The node is unlinked as a whole (never payload-swapped), so
        handles held for other intervals stay valid.
        """
        self._size -= 1
        if node.left is not None and node.right is not None:
            # Splice out the in-order successor, then put it in node's place
            successor = node.right
            while successor.left is not None:
                successor = successor.left

            if successor.parent is node:
                rebalance_from = successor
            else:
                rebalance_from = successor.parent
                self._replace_child(successor.parent, successor, successor.right)
                successor.right = node.right
                successor.right.parent = successor

            successor.left = node.left
            successor.left.parent = successor
            self._replace_child(node.parent, node, successor)
        else:
            rebalance_from = node.parent
            self._replace_child(node.parent, node, node.left or node.right)

        node.left = node.right = node.parent = None
        self._rebalance_upwards(rebalance_from)

    def clear(self) -> None:
        self.root = None
        self._size = 0

    # --- Queries ---

    def intersecting(self, start: T, end: T) -> list[IntervalNode[T]]:
        """Nodes whose interval overlaps [start, end], inclusive of endpoints."""
        found: list[IntervalNode[T]] = []

        def _search(node: Optional[IntervalNode[T]]) -> None:
            if node is None or start > node.max_end:
                return
            _search(node.left)
            if node.start <= end:
                if node.end >= start:
                    found.append(node)
                _search(node.right)

        _search(self.root)
        return found

    def covering(self, point: T) -> list[IntervalNode[T]]:
        """Nodes whose interval contains a single point."""
        return self.intersecting(point, point)

    def __iter__(self) -> Iterator[IntervalNode[T]]:
        stack: list[IntervalNode[T]] = []
        node = self.root
        while stack or node is not None:
            while node is not None:
                stack.append(node)
                node = node.left
            node = stack.pop()
            yield node
            node = node.right

    # --- Debug Tool ---

    def verify_integrity(self) -> None:
        """Raise RuntimeError if AVL balance, max_end or parent links are broken."""
        def _walk(node: Optional[IntervalNode[T]]):
            if node is None:
                return 0, None

            left_h, left_max = _walk(node.left)
            right_h, right_max = _walk(node.right)

            for child in (node.left, node.right):
                if child is not None and child.parent is not node:
                    raise RuntimeError(f"Parent link violation at {node.start}")
            if node.left is not None and node.left.start > node.start:
                raise RuntimeError(f"Ordering violation at {node.start}")
            if node.right is not None and node.right.start < node.start:
                raise RuntimeError(f"Ordering violation at {node.start}")
            if abs(left_h - right_h) > 1:
                raise RuntimeError(f"AVL violation at {node.start}")

            expected_max = node.end
            for child_max in (left_max, right_max):
                if child_max is not None and child_max > expected_max:
                    expected_max = child_max
            if node.max_end != expected_max:
                raise RuntimeError(f"MaxEnd violation at {node.start}")
            if node.height != 1 + max(left_h, right_h):
                raise RuntimeError(f"Height violation at {node.start}")

            return 1 + max(left_h, right_h), expected_max

        _walk(self.root)
