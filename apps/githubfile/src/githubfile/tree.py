"""Removing a single file from a branch tree."""

from typing import Iterable

from gh import TreeEntry


def remove_from_tree(entries: Iterable[TreeEntry], target_path: str) -> list[TreeEntry]:
    """
    Drop ``target_path`` from a recursive tree listing.

    Every ``tree`` entry is dropped as well: GitHub rebuilds subtrees from
    the surviving blobs, and a stale subtree entry would put the deleted
    file straight back.

    Args:
        entries: Entries of a recursive tree listing
        target_path: Path of the blob to remove

    Returns:
        Surviving entries, in their original order
    """
    return [
        entry
        for entry in entries
        if entry.type != "tree" and entry.path != target_path
    ]
