from scripts.verification.verify_setup import build_properties, parse_args, run_smoke
from utils.metrics import MetricsRegistry


def test_build_properties_flags_override_file_config():
    args = parse_args(['--host', 'db1,db2', '--durability', 'soft'])
    properties = build_properties(args, {'rethinkdb.host': 'localhost', 'rethinkdb.table': 't'})
    assert properties == {
        'rethinkdb.host': 'db1,db2',
        'rethinkdb.durability': 'soft',
        'rethinkdb.table': 't',
    }


def test_run_smoke_passes_on_healthy_backend(make_backend):
    backend = make_backend()
    metrics = MetricsRegistry()

    failures = run_smoke(backend, 'usertable', 5, 10, 'verify_', metrics)

    assert failures == []
    summaries = metrics.summaries()
    assert summaries['insert']['status_counts'] == {'OK': 5}
    assert summaries['update']['status_counts'] == {'OK': 5}
    assert summaries['scan']['status_counts'] == {'OK': 1}
    assert summaries['read']['status_counts'] == {'OK': 10, 'NOT_FOUND': 5}
    assert backend.client.databases['ycsb']['usertable'] == {}


def test_run_smoke_reports_leftover_records(make_backend):
    backend = make_backend()
    backend.insert('usertable', 'verify_000000', {'field0': 'stale'})

    failures = run_smoke(backend, 'usertable', 2, 3, 'verify_', MetricsRegistry())

    assert failures[0].startswith("insert verify_000000: ERROR Duplicate primary key")
    assert "read verify_000000: unexpected fields ['field0']" in failures
