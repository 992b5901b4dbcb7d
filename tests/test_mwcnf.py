import sys
from pathlib import Path
import pytest

np = pytest.importorskip("numpy")
sys.path.append(str(Path(__file__).resolve().parents[1]))

from mwcnf import (LoadError, count_unsatisfied, evaluate, load_instance,
                   unsatisfied_clauses, weight_sum)

def dataset_path(name='wuf20-01.mwcnf'):
    return Path(__file__).resolve().parents[1] / 'datasets' / name

def write(tmp_path, text, name='inst.mwcnf'):
    p = tmp_path / name
    p.write_text(text, encoding='utf-8')
    return p


def test_load_instance_values():
    inst = load_instance(dataset_path())
    assert inst.name == 'wuf20-01'
    assert inst.num_vars == 20
    assert inst.num_clauses == 78
    assert len(inst.clauses) == 78
    assert len(inst.weights) == 20
    assert inst.weight(1) == 15
    assert all(1 <= abs(l) <= 20 for c in inst.clauses for l in c)


def test_comments_blank_lines_and_empty_clauses_skipped(tmp_path):
    p = write(tmp_path, "c head\n\np mwcnf 3 2\nc between\nw 1 2 3 0\n\n1 -2 0\n0\nc tail\n-3 0\n")
    inst = load_instance(p)
    assert inst.clauses == [[1, -2], [-3]]
    assert inst.weights.tolist() == [1, 2, 3]


def test_short_weight_line_is_zero_padded(tmp_path):
    inst = load_instance(write(tmp_path, "p mwcnf 4 1\nw 7 8\n1 0\n"))
    assert inst.weights.tolist() == [7, 8, 0, 0]


def test_extra_weights_and_bad_tokens_ignored(tmp_path):
    inst = load_instance(write(tmp_path, "p mwcnf 2 1\nw 4 5 6 7 0\n1 0\n"))
    assert inst.weights.tolist() == [4, 5]
    inst = load_instance(write(tmp_path, "p mwcnf 3 1\nw 4 x 6 0\n1 0\n"))
    assert inst.weights.tolist() == [4, 0, 0]


def test_clause_without_terminator(tmp_path):
    inst = load_instance(write(tmp_path, "p mwcnf 2 1\nw 1 1 0\n1 -2\n"))
    assert inst.clauses == [[1, -2]]


@pytest.mark.parametrize("text", [
    "c nothing here\n",
    "p mwcnf\nw 1 0\n1 0\n",
    "p mwcnf 0 1\nw 1 0\n1 0\n",
])
def test_missing_header(tmp_path, text):
    with pytest.raises(LoadError):
        load_instance(write(tmp_path, text))


def test_indented_header_and_weights_not_recognised(tmp_path):
    with pytest.raises(LoadError):
        load_instance(write(tmp_path, "  p mwcnf 2 1\nw 1 1 0\n1 0\n"))
    with pytest.raises(LoadError):
        load_instance(write(tmp_path, "p mwcnf 2 1\n  w 1 1 0\n1 0\n"))


def test_missing_weights(tmp_path):
    with pytest.raises(LoadError):
        load_instance(write(tmp_path, "p mwcnf 2 1\n1 2 0\n"))
    with pytest.raises(LoadError):
        load_instance(write(tmp_path, "p mwcnf 2 1\nw\n1 2 0\n"))


def test_missing_file(tmp_path):
    with pytest.raises(LoadError):
        load_instance(tmp_path / 'nope.mwcnf')


def test_literal_out_of_range(tmp_path):
    with pytest.raises(LoadError):
        load_instance(write(tmp_path, "p mwcnf 2 1\nw 1 1 0\n1 3 0\n"))


def test_clause_count_mismatch_is_only_a_warning(tmp_path):
    inst = load_instance(write(tmp_path, "p mwcnf 2 5\nw 1 1 0\n1 0\n"))
    assert inst.num_clauses == 5
    assert len(inst.clauses) == 1
    assert "parsed 1" in (tmp_path / "test.log").read_text(encoding="utf-8")


def test_satisfaction_counts(tmp_path):
    inst = load_instance(write(tmp_path, "p mwcnf 3 3\nw 1 2 4 0\n1 2 0\n-1 0\n-2 3 0\n"))
    assign = [True, False, False]
    assert count_unsatisfied(inst, assign) == 1
    assert unsatisfied_clauses(inst, assign).tolist() == [1]
    assert weight_sum(inst, assign) == 1
    assert evaluate(inst, [False, True, True]) == (3, 0, 6)


def test_satisfied_plus_unsatisfied_is_clause_count():
    inst = load_instance(dataset_path())
    rng = np.random.default_rng(3)
    for _ in range(20):
        assign = rng.random(inst.num_vars) < 0.5
        sat, unsat, weight = evaluate(inst, assign)
        assert sat + unsat == len(inst.clauses)
        assert weight == int(inst.weights[assign].sum())


def test_planted_assignment_satisfies():
    inst = load_instance(dataset_path())
    planted = [(i + 1) % 2 == 1 for i in range(inst.num_vars)]
    assert count_unsatisfied(inst, planted) == 0


def test_wrong_assignment_shape():
    inst = load_instance(dataset_path())
    with pytest.raises(ValueError):
        count_unsatisfied(inst, [True] * 3)
