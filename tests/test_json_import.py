import pytest

from markgrove.errors import ImportFormatError
from markgrove.services.json_import import (
    FolderNode,
    LeafNode,
    parse_bookmarks_json,
    parse_node,
)


def test_parse_bookmarks_json_builds_parent_path():
    data = {
        "roots": {
            "bookmark_bar": {
                "children": [
                    {
                        "type": "folder",
                        "name": "Work",
                        "children": [
                            {"type": "url", "name": "Site", "url": "http://s.com"}
                        ],
                    }
                ]
            }
        }
    }

    rows = parse_bookmarks_json(data)
    assert len(rows) == 1
    row = rows[0]
    assert row.title == "Site"
    assert row.address == "http://s.com"
    assert row.type == "bookmark"
    assert [(parent.title, parent.type) for parent in row.parents] == [
        ("Work", "folder")
    ]


def test_parse_bookmarks_json_paths_are_nearest_first():
    data = {
        "roots": {
            "other": {
                "children": [
                    {
                        "type": "folder",
                        "name": "Outer",
                        "children": [
                            {
                                "type": "folder",
                                "name": "Inner",
                                "children": [
                                    {"type": "url", "name": "Deep", "url": "http://d.com"}
                                ],
                            },
                            {"type": "url", "name": "Shallow", "url": "http://o.com"},
                        ],
                    }
                ]
            }
        }
    }

    rows = parse_bookmarks_json(data)
    assert [row.title for row in rows] == ["Deep", "Shallow"]
    assert [parent.title for parent in rows[0].parents] == ["Inner", "Outer"]
    assert [parent.title for parent in rows[1].parents] == ["Outer"]


def test_parse_bookmarks_json_flattens_all_root_containers():
    data = {
        "roots": {
            "bookmark_bar": {
                "children": [{"type": "url", "name": "Bar", "url": "http://bar.com"}]
            },
            "other": {
                "children": [
                    {"type": "url", "name": "Other", "url": "http://other.com"},
                    {"type": "folder", "name": "Empty", "children": []},
                ]
            },
            "sync_transaction_version": "1",
        }
    }

    rows = parse_bookmarks_json(data)
    assert [row.title for row in rows] == ["Bar", "Other"]
    assert all(row.parents == [] for row in rows)


def test_parse_bookmarks_json_converts_webkit_timestamps():
    data = {
        "roots": {
            "bookmark_bar": {
                "children": [
                    {
                        "type": "url",
                        "name": "Dated",
                        "url": "http://dated.com",
                        "date_added": "13300000000000000",
                    }
                ]
            }
        }
    }

    rows = parse_bookmarks_json(data)
    assert rows[0].created.startswith("2022-06-18T04:26:40")
    assert rows[0].updated == ""


def test_parse_bookmarks_json_accepts_text_and_skips_malformed_nodes():
    text = """
    {"roots": {"bookmark_bar": {"children": [
        "not a node",
        {"type": "url", "name": "No address"},
        {"type": "separator", "name": "Line"},
        {"type": "url", "name": "Good", "url": "http://good.com"}
    ]}}}
    """

    rows = parse_bookmarks_json(text)
    assert [row.title for row in rows] == ["Good"]


def test_parse_bookmarks_json_without_roots_is_empty():
    assert parse_bookmarks_json({}) == []
    assert parse_bookmarks_json({"roots": []}) == []
    assert parse_bookmarks_json([1, 2, 3]) == []
    assert parse_bookmarks_json("") == []


def test_parse_bookmarks_json_rejects_invalid_text():
    with pytest.raises(ImportFormatError):
        parse_bookmarks_json("{not json")


def test_parse_node_discriminates_variants():
    folder = parse_node(
        {
            "type": "folder",
            "name": "F",
            "children": [{"type": "url", "name": "L", "url": "http://l.com"}, 5],
        }
    )
    assert isinstance(folder, FolderNode)
    assert len(folder.children) == 1
    assert isinstance(folder.children[0], LeafNode)

    assert parse_node({"type": "folder", "name": "No children"}).children == []
    assert parse_node({"name": "Untyped", "url": "http://u.com"}).url == "http://u.com"
    assert parse_node({"type": "mystery", "name": "?"}) is None
