from __future__ import annotations

import pandas as pd
import pytest

from bikefusion.core.errors import AmbiguousRelationError, JoinKeyError
from bikefusion.data_processing.relation import resolve_relation, unique_relation


def _counts(ids, values):
    return pd.DataFrame({"counterid": ids, "sfmta_count": values})


def test_one_zone_fans_out_to_many_sensors():
    relation = pd.DataFrame({"counterid": [1, 2], "taz_id": [100, 100]})
    result = resolve_relation(relation, _counts([1, 2], [5.0, 7.0]))

    assert result.n_dropped == 0
    assert result.table["taz_id"].tolist() == [100, 100]
    assert result.table["sfmta_count"].tolist() == [5.0, 7.0]


def test_unmatched_sensor_rows_are_dropped_and_reported():
    relation = pd.DataFrame({"counterid": [1], "taz_id": [100]})
    result = resolve_relation(relation, _counts([1, 2, 2, 3], [5.0, 7.0, 8.0, 1.0]))

    assert len(result.table) == 1
    assert result.n_input == 4
    assert result.n_dropped == 3
    assert result.unmatched_ids == ["2", "3"]


def test_sensor_mapped_to_two_zones_is_ambiguous():
    relation = pd.DataFrame({"counterid": [1, 1, 2], "taz_id": [100, 200, 100]})
    with pytest.raises(AmbiguousRelationError) as excinfo:
        resolve_relation(relation, _counts([1], [5.0]))
    assert excinfo.value.rows == ["1"]
    assert excinfo.value.stage == "relation"


def test_exact_duplicate_relation_rows_collapse():
    relation = pd.DataFrame({"counterid": [1, 1, 2], "taz_id": [100, 100, 100]})
    rel = unique_relation(relation)
    assert len(rel) == 2

    result = resolve_relation(relation, _counts([1, 2], [5.0, 7.0]))
    assert len(result.table) == 2


def test_missing_key_column_raises_join_key_error():
    relation = pd.DataFrame({"sensor": [1], "taz_id": [100]})
    with pytest.raises(JoinKeyError):
        resolve_relation(relation, _counts([1], [5.0]))


def test_inputs_are_not_mutated():
    relation = pd.DataFrame({"counterid": [1, 2], "taz_id": [100, 100]})
    counts = _counts([1, 2, 3], [5.0, 7.0, 9.0])
    before_rel, before_counts = relation.copy(), counts.copy()

    resolve_relation(relation, counts)

    pd.testing.assert_frame_equal(relation, before_rel)
    pd.testing.assert_frame_equal(counts, before_counts)
