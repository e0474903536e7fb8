"""
Tests for inventory path resolution and keyword search.
"""

import pytest
from inventory import (
    InventoryNode, WEARABLE, best_keyword_match, find_folder,
    find_folders_by_keywords, folder_items, full_path, is_descendant_of,
)


@pytest.fixture
def tree():
    """
    My Inventory
      #RLV
        Outfits
          Red
            Shoes   (Red Heels)
            Red Dress
          Blue
            Shoes   (Blue Sneakers)
        .private
          Shoes
    """
    top = InventoryNode("root", "My Inventory")
    rlv = top.folder("#RLV")
    outfits = rlv.folder("Outfits")
    red = outfits.folder("Red")
    red_shoes = red.folder("Shoes")
    red_shoes.item("Red Heels", kind=WEARABLE, layer="shoes")
    red.item("Red Dress", kind=WEARABLE, layer="skirt")
    blue = outfits.folder("Blue")
    blue_shoes = blue.folder("Shoes")
    blue_shoes.item("Blue Sneakers", kind=WEARABLE, layer="shoes")
    hidden = rlv.folder(".private")
    hidden.folder("Shoes")
    return {
        "top": top, "rlv": rlv, "outfits": outfits, "red": red,
        "red_shoes": red_shoes, "blue_shoes": blue_shoes, "hidden": hidden,
    }


class TestFullPath:

    def test_relative_to_root(self, tree):
        assert full_path(tree["red_shoes"], tree["rlv"]) == "Outfits/Red/Shoes"

    def test_parentless_top_contributes_nothing(self, tree):
        assert full_path(tree["red_shoes"]) == "#RLV/Outfits/Red/Shoes"

    def test_root_itself_is_empty(self, tree):
        assert full_path(tree["rlv"], tree["rlv"]) == ""


class TestFindFolder:

    def test_case_insensitive(self, tree):
        rlv = tree["rlv"]
        assert find_folder(rlv, "Outfits/Red/Shoes") is tree["red_shoes"]
        assert find_folder(rlv, "outfits/RED/shoes") is tree["red_shoes"]

    def test_slashes_trimmed(self, tree):
        assert find_folder(tree["rlv"], "/Outfits/Red/") is tree["red"]

    def test_empty_path_is_root(self, tree):
        assert find_folder(tree["rlv"], "") is tree["rlv"]

    def test_missing(self, tree):
        assert find_folder(tree["rlv"], "Outfits/Green") is None

    def test_items_do_not_match(self, tree):
        assert find_folder(tree["rlv"], "Outfits/Red/Red Dress") is None

    def test_first_complete_match_wins(self):
        """Depth-first: a same-named sibling is tried when the first one dead-ends."""
        root = InventoryNode("r", "#RLV")
        root.folder("A", id="a1")
        a2 = root.folder("A", id="a2")
        b = a2.folder("B")
        assert find_folder(root, "a/b") is b


class TestKeywordSearch:

    def test_all_keywords_required(self, tree):
        assert find_folders_by_keywords(tree["rlv"], ["red", "shoes"]) == [tree["red_shoes"]]

    def test_keyword_order_irrelevant(self, tree):
        assert find_folders_by_keywords(tree["rlv"], ["Shoes", "RED"]) == [tree["red_shoes"]]

    def test_discovery_order_and_hidden_skipped(self, tree):
        assert find_folders_by_keywords(tree["rlv"], ["shoes"]) == [tree["red_shoes"], tree["blue_shoes"]]

    def test_whole_segments_only(self, tree):
        assert find_folders_by_keywords(tree["rlv"], ["sho"]) == []

    def test_no_keywords(self, tree):
        assert find_folders_by_keywords(tree["rlv"], ["", "  "]) == []

    def test_best_match_is_deepest(self, tree):
        assert best_keyword_match(tree["rlv"], ["red"]) is tree["red_shoes"]

    def test_best_match_tie_goes_to_first(self, tree):
        assert best_keyword_match(tree["rlv"], ["shoes"]) is tree["red_shoes"]

    def test_best_match_none(self, tree):
        assert best_keyword_match(tree["rlv"], ["green"]) is None


class TestItems:

    def test_folder_items(self, tree):
        assert [i.name for i in folder_items(tree["red"])] == ["Red Dress"]
        assert [i.name for i in folder_items(tree["outfits"], recursive=True)] == [
            "Red Dress", "Red Heels", "Blue Sneakers"]

    def test_is_descendant_of(self, tree):
        heels = tree["red_shoes"].children[0]
        assert is_descendant_of(heels, tree["rlv"])
        assert not is_descendant_of(heels, tree["hidden"])
