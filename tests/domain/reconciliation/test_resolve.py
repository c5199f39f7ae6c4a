from __future__ import annotations

from sellout.domain.model import ReferenceEntity, ReferenceKey
from sellout.domain.reconciliation import ReferenceResolver
from tests.helpers.sales import FakeReferenceEntityRepository


def _resolver(
    repository: FakeReferenceEntityRepository,
    cache: dict[ReferenceKey, ReferenceEntity] | None = None,
    *,
    in_limit: int = 1000,
    parameter_ceiling: int = 2100,
) -> ReferenceResolver:
    return ReferenceResolver(
        repository,
        {} if cache is None else cache,
        in_limit=in_limit,
        parameter_ceiling=parameter_ceiling,
    )


def test_existing_entity_is_found_by_normalized_pair() -> None:
    existing = ReferenceEntity(code="C001", name="Acme Corp", name_key="ACME CORP")
    repository = FakeReferenceEntityRepository(entities=[existing])

    resolution = _resolver(repository).resolve([("c001", " acme  corp")])

    assert resolution.entity_for(("c001", " acme  corp")) is existing
    assert resolution.created == 0
    assert len(repository.entities) == 1


def test_missing_entity_is_created_with_original_trimmed_name() -> None:
    repository = FakeReferenceEntityRepository()

    resolution = _resolver(repository).resolve([(" c001 ", "  Acmé Corp ")])

    entity = resolution.entity_for((" c001 ", "  Acmé Corp "))
    assert entity is not None
    assert entity.code == "C001"
    assert entity.name == "Acmé Corp"
    assert entity.name_key == "ACME CORP"
    assert repository.entities == [entity]
    assert resolution.created == 1


def test_equivalent_pairs_share_one_created_entity() -> None:
    repository = FakeReferenceEntityRepository()

    resolution = _resolver(repository).resolve([("X", "ACME"), ("x", "Acme"), ("X ", "acme ")])

    entities = {id(entity) for entity in resolution.entities.values()}
    assert len(entities) == 1
    assert len(repository.entities) == 1


def test_same_code_with_different_names_creates_distinct_entities() -> None:
    repository = FakeReferenceEntityRepository()

    resolution = _resolver(repository).resolve([("C001", "Acme Corp"), ("C001", "Acme Retail")])

    first = resolution.entity_for(("C001", "Acme Corp"))
    second = resolution.entity_for(("C001", "Acme Retail"))
    assert first is not None
    assert second is not None
    assert first.id != second.id
    assert first.code == second.code == "C001"


def test_run_cache_memoizes_across_calls() -> None:
    repository = FakeReferenceEntityRepository()
    cache: dict[ReferenceKey, ReferenceEntity] = {}

    first = _resolver(repository, cache).resolve([("C001", "ACME")])
    second = _resolver(repository, cache).resolve([("c001", "acme")])

    assert first.entity_for(("C001", "ACME")) is second.entity_for(("c001", "acme"))
    assert repository.key_batches == [1]
    assert len(repository.entities) == 1


def test_code_only_pair_resolves_by_code_without_creating() -> None:
    retail = ReferenceEntity(code="C001", name="Acme Retail", name_key="ACME RETAIL")
    corp = ReferenceEntity(code="C001", name="Acme Corp", name_key="ACME CORP")
    repository = FakeReferenceEntityRepository(entities=[retail, corp])

    resolution = _resolver(repository).resolve([("c001", None), ("C002", "  ")])

    assert resolution.entity_for(("c001", None)) is corp
    assert resolution.entity_for(("C002", "  ")) is None
    assert len(repository.entities) == 2
    assert resolution.created == 0


def test_blank_code_is_unresolved() -> None:
    repository = FakeReferenceEntityRepository()

    resolution = _resolver(repository).resolve([(None, "ACME"), ("  ", "ACME")])

    assert resolution.entities == {}
    assert resolution.conflicts == {}
    assert repository.entities == []


def test_creation_conflict_is_reported_per_pair() -> None:
    repository = FakeReferenceEntityRepository(conflicting={ReferenceKey("C009", "RACE")})

    resolution = _resolver(repository).resolve([("C009", "Race"), ("C001", "Fine")])

    assert resolution.entity_for(("C009", "Race")) is None
    assert resolution.conflict_for(("C009", "Race")) is not None
    assert resolution.entity_for(("C001", "Fine")) is not None


def test_lookups_are_partitioned_under_the_parameter_ceiling() -> None:
    repository = FakeReferenceEntityRepository()
    pairs = [(f"C{index:04d}", "ACME") for index in range(25)]

    _resolver(repository, in_limit=1000, parameter_ceiling=20).resolve(pairs)

    assert repository.key_batches == [10, 10, 5]
