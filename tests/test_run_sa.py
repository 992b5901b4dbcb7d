import io
import sys
from pathlib import Path
import pytest

pytest.importorskip("numpy")
sys.path.append(str(Path(__file__).resolve().parents[1]))

import run_sa

def dataset_path(name='trap-02.mwcnf'):
    return Path(__file__).resolve().parents[1] / 'datasets' / name


def test_format_best_solution():
    line = run_sa.format_best_solution(('uf20-01', 42, [True, False, True]))
    assert line == 'uf20-01 42 1 -2 3 0'


def test_write_result_record_appends_csv_line():
    sink = io.StringIO()
    run_sa.write_result_record(sink, ('a', 5, 1, 0, 300))
    run_sa.write_result_record(sink, ('b', 7, 2, 1, 10))
    assert sink.getvalue() == 'a,5,1,0,300\nb,7,2,1,10\n'


def test_main_writes_record_trace_and_solution(tmp_path, capsys):
    out, trace = tmp_path / 'res.dat', tmp_path / 'trace.csv'
    out.write_text('previous,1,1,0,1\n', encoding='utf-8')
    rc = run_sa.main([str(dataset_path()), '10', '0.9', '0.5', '20',
                      '--out', str(out), '--trace', str(trace), '--seed', '7'])
    assert rc == 0
    assert 'trap-02 1 -1 2 0' in capsys.readouterr().out

    records = out.read_text(encoding='utf-8').splitlines()
    assert records[0] == 'previous,1,1,0,1'
    name, weight, sat, unsat, steps = records[1].split(',')
    assert (name, weight, sat, unsat) == ('trap-02', '1', '2', '0')

    rows = trace.read_text(encoding='utf-8').splitlines()
    assert rows[0] == 'step,energy,satisfied,unsatisfied,weight'
    assert len(rows) == int(steps) + 2


def test_main_auto_schedule(tmp_path, capsys):
    assert run_sa.main([str(dataset_path('tiny-01.mwcnf')), '--seed', '1']) == 0
    assert 'tiny-01 5 1 0' in capsys.readouterr().out


def test_main_missing_instance(tmp_path):
    assert run_sa.main([str(tmp_path / 'missing.mwcnf')]) == 1


def test_main_unwritable_output(tmp_path):
    bad = tmp_path / 'no_such_dir' / 'res.dat'
    assert run_sa.main([str(dataset_path()), '--out', str(bad), '--seed', '0']) == 1


def test_main_invalid_schedule_fails(tmp_path):
    assert run_sa.main([str(dataset_path()), '1', '0.9', '2', '5', '--seed', '0']) == 1


def test_partial_schedule_is_usage_error():
    with pytest.raises(SystemExit) as exc:
        run_sa.main([str(dataset_path()), '10', '0.9', '0.5'])
    assert exc.value.code == 2


def test_log_option_redirects_log(tmp_path):
    log_file = tmp_path / 'run.log'
    assert run_sa.main([str(dataset_path()), '--seed', '3', '--log', str(log_file)]) == 0
    assert 'seed=3' in log_file.read_text(encoding='utf-8')
