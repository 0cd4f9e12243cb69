import pytest

from references import ReferenceRegistry, build_reference_ids, collect_license_entities, sorted_unique_licenses
from samples import FAILURE, lic, result


def test_ids_are_dense_and_follow_case_insensitive_name_order() -> None:
    entities = [lic("MIT"), lic("apache-2.0"), lic("MIT"), lic(None, ""), lic("BSD")]

    ids = build_reference_ids(entities)

    assert ids == {
        ("apache-2.0", "apache-2.0 text"): 1,
        ("BSD", "BSD text"): 2,
        ("MIT", "MIT text"): 3,
    }


def test_build_is_idempotent() -> None:
    entities = [lic("Zlib"), lic("gpl-2.0"), lic("GPL-2.0", "other text")]

    assert build_reference_ids(entities) == build_reference_ids(list(entities))


def test_equal_names_keep_encounter_order() -> None:
    first, second = lic("MIT", "x"), lic("mit", "y")

    assert [e.key for e in sorted_unique_licenses([first, second])] == [first.key, second.key]
    assert [e.key for e in sorted_unique_licenses([second, first])] == [second.key, first.key]


def test_same_name_with_different_text_gets_two_ids() -> None:
    ids = build_reference_ids([lic("MIT", "a"), lic("MIT", "b")])

    assert sorted(ids.values()) == [1, 2]


def test_only_successful_results_contribute() -> None:
    results = [
        result("ok", [lic("MIT"), lic("", "")]),
        result("broken", [lic("GPL-3.0")], status=FAILURE),
        None,
    ]

    assert [e.license_name for e in collect_license_entities(results)] == ["MIT"]


def test_registry_lookup_and_entries() -> None:
    shared = lic("MIT")
    registry = ReferenceRegistry.from_results([
        result("one", [shared, lic("BSD")]),
        result("two", [lic("MIT")]),
    ])

    assert len(registry) == 2
    assert registry.id_for(shared) == registry.id_for(lic("MIT")) == 2
    assert [(i, e.license_name) for i, e in registry.entries()] == [(1, "BSD"), (2, "MIT")]
    assert lic("BSD") in registry
    assert registry.as_dict()[("BSD", "BSD text")] == 1


def test_registry_ids_match_build_for_a_one_shot_iterable() -> None:
    entities = [lic("Zlib"), lic("mit"), lic("Apache-2.0"), lic("MIT", "other text")]

    registry = ReferenceRegistry(iter(entities))

    assert registry.as_dict() == build_reference_ids(entities)
    assert [e.key for _, e in registry.entries()] == [e.key for e in sorted_unique_licenses(entities)]


def test_unregistered_license_raises() -> None:
    registry = ReferenceRegistry([lic("MIT")])

    with pytest.raises(KeyError):
        registry.id_for(lic("Unlisted"))
