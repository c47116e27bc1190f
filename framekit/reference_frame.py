# reference_frame.py
"""
Reference frames organized in trees, with lazily cached transforms to the root.

Every frame stores its transform to its parent and a generation counter that is advanced
each time that transform changes. The transform to the root is cached together with the
snapshot of the generations of the frame and all of its ancestors: the cache is stale as
soon as one of these generations differs, whatever the order in which frames were updated.
On top of that, each tree keeps a modification counter so that a cache already validated
since the last change anywhere in the tree is reused without walking the ancestor chain.

Frames are not thread-safe. All updates of a tree are expected to be done by a single
writer, and transforms read only once the updates of the cycle are complete.
"""
import itertools
import logging
from typing import Callable, Dict, Iterator, List, Optional, Tuple, Union, Iterable

import numpy as np

from framekit.errors import (
    CrossRootTransformError,
    FrameRegistryError,
    RemovedFrameError,
)
from framekit.transform import RigidTransform

logger = logging.getLogger(__name__)

UpdateRule = Callable[[RigidTransform], RigidTransform]

_frame_ids = itertools.count()


class FrameTree:
    """
    Registry owning all the frames that share one root.

    Frame names are unique within a tree. A tree is created along with its root frame and
    never outlives it: removing the root empties the tree.
    """
    __slots__ = ("_root", "_frames", "_names", "_modification_count")

    def __init__(self, root: "ReferenceFrame"):
        self._root = root
        self._frames: Dict[int, "ReferenceFrame"] = {}
        self._names: Dict[str, "ReferenceFrame"] = {}
        self._modification_count = 0

    @property
    def root(self) -> "ReferenceFrame":
        return self._root

    @property
    def modification_count(self) -> int:
        """Advanced every time a transform-to-parent of the tree changes or frames are removed."""
        return self._modification_count

    def _check_can_register(self, name: str, parent: Optional["ReferenceFrame"]) -> None:
        if name in self._names:
            raise FrameRegistryError(
                f"A frame named '{name}' already exists in the tree of '{self._root.name}'")
        if parent is not None:
            if parent._removed:
                raise RemovedFrameError(f"Cannot attach '{name}' to the removed frame '{parent.name}'")
            if parent._tree is not self or parent._frame_id not in self._frames:
                raise FrameRegistryError(
                    f"The parent frame '{parent.name}' is not registered in the tree of '{self._root.name}'")

    def _register(self, frame: "ReferenceFrame") -> None:
        self._frames[frame._frame_id] = frame
        self._names[frame._name] = frame

    def _mark_modified(self) -> None:
        self._modification_count += 1

    def get(self, name: str) -> Optional["ReferenceFrame"]:
        return self._names.get(name)

    def descendants_of(self, frame: "ReferenceFrame") -> List["ReferenceFrame"]:
        """Every registered frame that has `frame` anywhere in its ancestor chain."""
        return [f for f in self._frames.values() if f is not frame and frame in f._chain]

    def children_of(self, frame: "ReferenceFrame") -> List["ReferenceFrame"]:
        return [f for f in self._frames.values() if f._parent is frame]

    def remove(self, frame: "ReferenceFrame") -> List["ReferenceFrame"]:
        """
        Unregister a frame together with all its descendants.

        Args:
            frame: a frame registered in this tree.

        Returns:
            The removed frames, `frame` first.

        Raises:
            FrameRegistryError: if the frame is not registered in this tree.
        """
        if frame._tree is not self or frame._frame_id not in self._frames:
            raise FrameRegistryError(f"The frame '{frame.name}' is not registered in the tree of '{self._root.name}'")

        removed = [frame] + self.descendants_of(frame)
        for f in removed:
            del self._frames[f._frame_id]
            del self._names[f._name]
            f._removed = True
        self._mark_modified()
        logger.debug("Removed frame '%s' and %d descendant(s)", frame.name, len(removed) - 1)
        return removed

    def __contains__(self, frame: object) -> bool:
        return isinstance(frame, ReferenceFrame) and self._frames.get(frame._frame_id) is frame

    def __iter__(self) -> Iterator["ReferenceFrame"]:
        return iter(list(self._frames.values()))

    def __len__(self) -> int:
        return len(self._frames)

    def __repr__(self):
        return f"{self.__class__.__name__}(root='{self._root.name}', frames={len(self._frames)})"


class ReferenceFrame:
    """
    A named coordinate system attached to a parent frame, or the root of a new tree.

    The transform to the parent maps coordinates expressed in this frame to coordinates
    expressed in the parent. It only changes through `update()`, which calls the update rule
    (or `update_transform_to_parent` when overridden in a subclass) with the current transform
    and stores the returned one.

    Two frames are equal only if they are the same object; the hash is the frame id.

    Args:
        name: name of the frame, unique within its tree.
        parent: parent frame, or None to create the root of a new tree.
        transform_to_parent: initial transform to the parent, identity by default.
        update_rule: callable receiving a copy of the current transform to the parent and
            returning the new one. Frames without an update rule are fixed in their parent.
    """
    __slots__ = (
        "_name",
        "_frame_id",
        "_parent",
        "_root",
        "_tree",
        "_chain",
        "_update_rule",
        "_is_fixed",
        "_transform_to_parent",
        "_generation",
        "_transform_to_root",
        "_cached_generations",
        "_validated_at",
        "_removed",
    )

    def __init__(
        self,
        name: str,
        parent: Optional["ReferenceFrame"] = None,
        transform_to_parent: Optional[RigidTransform] = None,
        update_rule: Optional[UpdateRule] = None,
    ):
        name = str(name)
        if parent is None:
            if transform_to_parent is not None or update_rule is not None:
                raise ValueError("A root frame cannot have a transform to parent or an update rule")
            tree = FrameTree(self)
        else:
            if not isinstance(parent, ReferenceFrame):
                raise TypeError(f"Expected a ReferenceFrame as parent, got {type(parent).__name__}")
            tree = parent._tree
        tree._check_can_register(name, parent)

        if transform_to_parent is None:
            transform_to_parent = RigidTransform.identity()
        elif not isinstance(transform_to_parent, RigidTransform):
            raise TypeError(f"Expected a RigidTransform, got {type(transform_to_parent).__name__}")

        self._name = name
        self._frame_id = next(_frame_ids)
        self._parent = parent
        self._tree = tree
        self._root = self if parent is None else parent._root
        self._chain: Tuple["ReferenceFrame", ...] = (self,) if parent is None else (self,) + parent._chain
        self._update_rule = update_rule
        self._is_fixed = (
            update_rule is None
            and type(self).update_transform_to_parent is ReferenceFrame.update_transform_to_parent
        )
        self._transform_to_parent = transform_to_parent.copy()
        self._generation = 0
        self._transform_to_root: Optional[RigidTransform] = None
        self._cached_generations: Optional[Tuple[int, ...]] = None
        self._validated_at = -1
        self._removed = False

        tree._register(self)
        logger.debug("Created frame '%s' (parent: %s)", name, None if parent is None else parent.name)

    # ------------------------------------------------------------------
    # identity and structure
    #

    @property
    def name(self) -> str:
        return self._name

    @property
    def frame_id(self) -> int:
        return self._frame_id

    @property
    def parent(self) -> Optional["ReferenceFrame"]:
        return self._parent

    @property
    def root(self) -> "ReferenceFrame":
        return self._root

    @property
    def tree(self) -> FrameTree:
        return self._tree

    @property
    def generation(self) -> int:
        """Number of times the transform to the parent has been changed."""
        return self._generation

    @property
    def depth(self) -> int:
        """Number of ancestors, 0 for a root frame."""
        return len(self._chain) - 1

    @property
    def is_root(self) -> bool:
        return self._parent is None

    @property
    def is_removed(self) -> bool:
        return self._removed

    @property
    def is_fixed_in_parent(self) -> bool:
        return self._is_fixed

    @property
    def is_stationary(self) -> bool:
        """True if neither this frame nor any of its ancestors can move relative to the root."""
        return all(f._is_fixed for f in self._chain)

    @property
    def name_path(self) -> str:
        """Names from the root down to this frame, joined with ':'."""
        return ":".join(f._name for f in reversed(self._chain))

    def ancestors(self) -> Tuple["ReferenceFrame", ...]:
        """The parent, grand-parent, ..., up to the root."""
        return self._chain[1:]

    def children(self) -> List["ReferenceFrame"]:
        return self._tree.children_of(self)

    def descendants(self) -> List["ReferenceFrame"]:
        return self._tree.descendants_of(self)

    def is_ancestor_of(self, other: "ReferenceFrame") -> bool:
        return other is not self and self in other._chain

    # ------------------------------------------------------------------
    # update protocol
    #

    def update_transform_to_parent(self, transform_to_parent: RigidTransform) -> RigidTransform:
        """
        Compute the new transform to the parent.

        Subclasses describing a moving frame override this method instead of passing an
        update rule.

        Args:
            transform_to_parent: copy of the current transform to the parent.
        """
        if self._update_rule is None:
            return transform_to_parent
        return self._update_rule(transform_to_parent)

    def update(self) -> None:
        """
        Recompute the transform to the parent and advance the generation of this frame.

        Root frames and frames fixed in their parent are left untouched. If the update rule
        raises, the exception propagates and the frame keeps its previous transform and
        generation.
        """
        self._check_not_removed()
        if self._parent is None or self._is_fixed:
            return

        new_transform = self.update_transform_to_parent(self._transform_to_parent.copy())
        if not isinstance(new_transform, RigidTransform):
            raise TypeError(
                f"The update of '{self._name}' must produce a RigidTransform, got {type(new_transform).__name__}")

        self._transform_to_parent = new_transform.copy()
        self._generation += 1
        self._tree._mark_modified()

    def _cached_transform_to_root(self) -> RigidTransform:
        """
        Return the cached transform to the root, recomputing it first if it is stale.

        Walks up the chain to the closest frame whose cache is still valid, then composes
        downward, refreshing the cache of every frame in between.
        """
        count = self._tree._modification_count
        if self._validated_at == count:
            return self._transform_to_root

        chain = self._chain
        generations = tuple(f._generation for f in chain)
        for start in range(len(chain)):
            frame = chain[start]
            if frame._validated_at == count or frame._cached_generations == generations[start:]:
                break
        else:
            start = len(chain) - 1
            frame = chain[start]
            frame._transform_to_root = RigidTransform.identity()
            frame._cached_generations = generations[start:]

        frame._validated_at = count
        transform = frame._transform_to_root
        for i in range(start - 1, -1, -1):
            frame = chain[i]
            transform = transform @ frame._transform_to_parent
            frame._transform_to_root = transform
            frame._cached_generations = generations[i:]
            frame._validated_at = count
        if start > 0 and logger.isEnabledFor(logging.DEBUG):
            logger.debug("Recomputed transform to root of '%s' (%d frame(s))", self._name, start)
        return self._transform_to_root

    # ------------------------------------------------------------------
    # transform queries
    #

    def get_transform_to_parent(self) -> RigidTransform:
        self._check_not_removed()
        return self._transform_to_parent.copy()

    def get_transform_to_root(self) -> RigidTransform:
        """
        Transform mapping coordinates expressed in this frame to the root frame.

        Returns:
            A copy of the cached transform, recomputed only if stale.
        """
        self._check_not_removed()
        return self._cached_transform_to_root().copy()

    def get_transform_to_desired_frame(self, desired_frame: "ReferenceFrame") -> RigidTransform:
        """
        Transform mapping coordinates expressed in this frame to `desired_frame`.

        Computed as inverse(desired_frame to root) @ (self to root). When `desired_frame` is
        this frame the result is the exact identity rather than that product, which only
        equals the identity up to rounding.

        Raises:
            CrossRootTransformError: if the two frames do not share the same root.
        """
        self.verify_same_roots(desired_frame)
        if desired_frame is self:
            return RigidTransform.identity()
        if desired_frame is self._root:
            return self._cached_transform_to_root().copy()
        return desired_frame._cached_transform_to_root().inverse_multiply(self._cached_transform_to_root())

    def get_transform_to_world_frame(self) -> RigidTransform:
        return self.get_transform_to_desired_frame(get_world_frame())

    def transform_from_desired_frame(self, desired_frame: "ReferenceFrame") -> RigidTransform:
        """Inverse of get_transform_to_desired_frame."""
        return desired_frame.get_transform_to_desired_frame(self)

    # ------------------------------------------------------------------
    # checks
    #

    def verify_same_roots(self, other: "ReferenceFrame") -> None:
        """
        Raises:
            CrossRootTransformError: if `other` does not belong to the same tree.
            RemovedFrameError: if either frame has been removed.
        """
        self._check_not_removed()
        other._check_not_removed()
        if self._root is not other._root:
            raise CrossRootTransformError(self, other)

    def check_reference_frame_match(self, other) -> None:
        """
        Raises:
            ReferenceFrameMismatchError: if `other` (a frame or a frame-aware value) is not
                expressed in this exact frame.
        """
        from framekit.frame_tools import check_reference_frame_match
        check_reference_frame_match(self, other)

    def _check_not_removed(self) -> None:
        if self._removed:
            raise RemovedFrameError(f"The frame '{self._name}' has been removed")

    # ------------------------------------------------------------------
    # lifecycle
    #

    def remove(self) -> List["ReferenceFrame"]:
        """Remove this frame and all its descendants from the tree."""
        return self._tree.remove(self)

    def clear_descendants(self) -> List["ReferenceFrame"]:
        """Remove all the descendants of this frame, keeping the frame itself."""
        removed = []
        for child in self.children():
            if not child._removed:
                removed.extend(self._tree.remove(child))
        return removed

    def __hash__(self) -> int:
        return self._frame_id

    def __repr__(self):
        parent = None if self._parent is None else self._parent._name
        return f"{self.__class__.__name__}('{self._name}', parent={parent!r})"

    def __str__(self):
        return self._name


# ----------------------------------------------------------------------
# module-level protocol
#

def create_root_frame(name: str) -> ReferenceFrame:
    """Create the root frame of a new, independent tree."""
    return ReferenceFrame(name)


def create_child_frame(
    name: str,
    parent: ReferenceFrame,
    update_rule: Optional[UpdateRule] = None,
    transform_to_parent: Optional[RigidTransform] = None,
) -> ReferenceFrame:
    """
    Create a frame attached to `parent`.

    With an update rule, the transform to the parent is only computed when `update()` is
    called; until then it is `transform_to_parent` (identity by default).
    """
    if parent is None:
        raise ValueError("A child frame needs a parent, use create_root_frame for roots")
    return ReferenceFrame(name, parent, transform_to_parent=transform_to_parent, update_rule=update_rule)


def create_fixed_frame(name: str, parent: ReferenceFrame, transform_to_parent: RigidTransform) -> ReferenceFrame:
    """Create a frame whose transform to its parent never changes."""
    return ReferenceFrame(name, parent, transform_to_parent=transform_to_parent)


def create_fixed_translation_frame(name: str, parent: ReferenceFrame, translation: Iterable) -> ReferenceFrame:
    """Create a frame with a constant offset from its parent and the same orientation."""
    return ReferenceFrame(name, parent, transform_to_parent=RigidTransform.from_translation(translation))


def create_changing_frame(name: str, parent: ReferenceFrame, transform_holder: RigidTransform) -> ReferenceFrame:
    """
    Create a frame that reads its transform to parent from a caller-owned transform.

    The caller replaces the content of `transform_holder` (see `set_transform_holder`) and
    calls `update()` on the frame to commit it. The frame is updated once on creation.
    """
    if not isinstance(transform_holder, RigidTransform):
        raise TypeError(f"Expected a RigidTransform, got {type(transform_holder).__name__}")
    frame = ReferenceFrame(name, parent, update_rule=lambda _: transform_holder.copy())
    frame.update()
    return frame


def set_transform_holder(transform_holder: RigidTransform, new_value: RigidTransform) -> None:
    """Overwrite in place the content of a transform passed to create_changing_frame."""
    np.copyto(transform_holder.translation, new_value.translation)
    np.copyto(transform_holder.rotation, new_value.rotation)


def update(frame: ReferenceFrame) -> None:
    frame.update()


def get_transform_to_root(frame: ReferenceFrame) -> RigidTransform:
    return frame.get_transform_to_root()


def get_transform_to_desired_frame(source: ReferenceFrame, target: ReferenceFrame) -> RigidTransform:
    return source.get_transform_to_desired_frame(target)


def verify_same_roots(frame_a: ReferenceFrame, frame_b: ReferenceFrame) -> None:
    frame_a.verify_same_roots(frame_b)


def remove_frame(frame: ReferenceFrame) -> List[ReferenceFrame]:
    return frame.remove()


# ----------------------------------------------------------------------
# world frame
#

_world_frame: Union[None, ReferenceFrame] = None


def get_world_frame() -> ReferenceFrame:
    """The process-wide world frame, root of its own tree, created on first use."""
    global _world_frame
    if _world_frame is None or _world_frame.is_removed:
        _world_frame = create_root_frame("World")
    return _world_frame


def clear_world_frame_tree() -> None:
    """Remove every frame attached to the world frame."""
    get_world_frame().clear_descendants()
