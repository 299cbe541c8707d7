"""Tree editor tests."""

from gh import TreeEntry

from githubfile import remove_from_tree


def blob(path):
    return TreeEntry(path=path, mode="100644", type="blob", sha="b" * 40)


def tree(path):
    return TreeEntry(path=path, mode="040000", type="tree", sha="t" * 40)


def test_removes_target_and_every_tree_entry():
    entries = [blob("a"), tree("x"), blob("a/b")]

    result = remove_from_tree(entries, "a")

    assert [e.path for e in result] == ["a/b"]


def test_keeps_order_of_surviving_entries():
    entries = [blob("z.txt"), tree("docs"), blob("docs/a.md"), blob("b.txt"), blob("docs/b.md")]

    result = remove_from_tree(entries, "docs/a.md")

    assert [e.path for e in result] == ["z.txt", "b.txt", "docs/b.md"]


def test_keeps_submodule_entries():
    submodule = TreeEntry(path="vendor/lib", mode="160000", type="commit", sha="c" * 40)

    assert remove_from_tree([submodule, blob("f.txt")], "f.txt") == [submodule]


def test_idempotent():
    entries = [tree("a"), blob("a/one"), blob("a/two"), blob("three")]

    once = remove_from_tree(entries, "a/one")

    assert remove_from_tree(once, "a/one") == once


def test_missing_target_only_drops_trees():
    entries = [blob("a"), tree("b"), blob("b/c")]

    assert remove_from_tree(entries, "nope") == [entries[0], entries[2]]


def test_empty_listing():
    assert remove_from_tree([], "a") == []
