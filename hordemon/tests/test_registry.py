import pytest

from hordemon.models import GenerationType
from hordemon.registry import GenerationRegistry


def test_cancel_then_poll_replaces_not_merges():
    reg = GenerationRegistry()
    reg.replace_all(["a", "b"], [])
    assert reg.cancel("a", "image")
    assert reg.ids("image") == ["b"]
    reg.replace_all(["b", "c"], [])
    assert reg.ids(GenerationType.image) == ["b", "c"]


def test_replace_drops_ids_missing_from_new_sample():
    reg = GenerationRegistry()
    reg.replace_all(["a"], ["t1", "t2"])
    reg.replace_all([], ["t2"])
    assert reg.snapshot() == {"image": [], "text": ["t2"]}


def test_cancel_unknown_id_is_a_noop():
    reg = GenerationRegistry()
    reg.replace_all(["a"], [])
    assert not reg.cancel("zzz", GenerationType.image)
    assert not reg.cancel("a", GenerationType.text)
    assert reg.ids("image") == ["a"]


def test_duplicate_ids_collapse():
    reg = GenerationRegistry()
    reg.replace_all(["a", "a", "b"], [])
    assert reg.ids("image") == ["a", "b"]


def test_unknown_kind_rejected():
    reg = GenerationRegistry()
    with pytest.raises(ValueError):
        reg.cancel("a", "video")
