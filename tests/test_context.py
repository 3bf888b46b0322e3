import json

import pytest

from codelaunch.packages.context import (
    ConfigReadError,
    ProjectContext,
    find_secret_names,
    gather_project_context,
    normalize_config,
    read_raw_config,
)
from codelaunch.packages.context.config_reader import strip_jsonc

from conftest import WRANGLER_TOML


def _events(event_log):
    return [json.loads(line) for line in event_log.log_path.read_text().splitlines()]


def test_no_config_gives_empty_bindings(project):
    context = gather_project_context(project, environ={})

    assert context.config_files == []
    assert context.wrangler_config is None
    assert context.raw_config is None
    assert context.bindings.vars == {}
    assert context.bindings.secrets == []
    assert context.bindings.kv_namespaces == []
    assert context.bindings.queues == {"producers": [], "consumers": []}


def test_every_config_file_is_recorded(project):
    (project / "wrangler.toml").write_text(WRANGLER_TOML)
    (project / "wrangler.json").write_text('{"name": "from-json"}')
    (project / "wrangler.jsonc").write_text('{"name": "from-jsonc"}')

    context = gather_project_context(project, environ={})

    assert [p.rsplit("/", 1)[-1] for p in context.config_files] == [
        "wrangler.toml", "wrangler.json", "wrangler.jsonc",
    ]
    # highest priority file wins
    assert context.worker_name == "my-worker"


def test_toml_bindings_and_identity(project):
    (project / "wrangler.toml").write_text(WRANGLER_TOML)

    context = gather_project_context(project, environ={})

    assert len(context.bindings.kv_namespaces) == 1
    assert len(context.bindings.d1_databases) == 1
    assert context.bindings.d1_databases[0]["database_name"] == "prod-db"
    assert context.bindings.secrets == []
    assert context.workers_runtime == "2024-09-23"
    assert context.account_id == "abc123"
    assert context.worker_name == "my-worker"
    assert context.environment is None


def test_unparseable_config_is_recovered_and_logged(project, event_log):
    (project / "wrangler.toml").write_text("name = [unterminated")

    context = gather_project_context(project, environ={})

    assert len(context.config_files) == 1
    assert context.wrangler_config is None
    assert context.bindings.vars == {}
    failures = [e for e in _events(event_log) if e["event_type"] == "context.config_unreadable"]
    assert failures and failures[0]["severity"] == "debug"


def test_undecodable_config_is_recovered_and_logged(project, event_log):
    (project / "wrangler.toml").write_bytes(b'name = "w\xff\xfe"\n')

    context = gather_project_context(project, environ={})

    assert context.wrangler_config is None
    assert context.raw_config is None
    assert context.bindings.kv_namespaces == []
    assert context.bindings.vars == {}
    failures = [e for e in _events(event_log) if e["event_type"] == "context.config_unreadable"]
    assert failures and failures[0]["severity"] == "debug"


def test_toml_dates_become_iso_strings(project):
    (project / "wrangler.toml").write_text(
        'name = "w"\n'
        "compatibility_date = 2024-09-23\n"
        "[vars]\n"
        "LAUNCHED = 2024-01-02T03:04:05Z\n"
        "WINDOWS = [08:30:00]\n"
    )

    context = gather_project_context(project, environ={})

    assert context.workers_runtime == "2024-09-23"
    assert context.raw_config["compatibility_date"] == "2024-09-23"
    assert context.bindings.vars == {
        "LAUNCHED": "2024-01-02T03:04:05+00:00",
        "WINDOWS": ["08:30:00"],
    }
    json.dumps(context.to_dict())


def test_wrong_binding_shape_is_recovered(project):
    (project / "wrangler.json").write_text('{"kv_namespaces": {"binding": "X"}}')

    context = gather_project_context(project, environ={})

    assert context.raw_config == {"kv_namespaces": {"binding": "X"}}
    assert context.wrangler_config is None
    assert context.bindings.kv_namespaces == []


def test_secret_names_never_values(project):
    (project / "wrangler.json").write_text(json.dumps({
        "vars": {"API_KEY": "sk-live-123", "github_token": "ghp_x",
                 "MY_SECRET": "s", "GREETING": "hello", "monkey": "banana"},
    }))

    context = gather_project_context(project, environ={})

    assert sorted(context.bindings.secrets) == ["API_KEY", "MY_SECRET", "github_token", "monkey"]
    assert "sk-live-123" not in context.bindings.secrets


@pytest.mark.parametrize("key,expected", [
    ("DB_PASSWORD", False),
    ("stripe_key", True),
    ("Token", True),
    ("secretive", True),
    ("PUBLIC_URL", False),
])
def test_find_secret_names_is_case_insensitive(key, expected):
    assert (key in find_secret_names({key: "value"})) is expected


def test_environment_overlay(project):
    (project / "wrangler.toml").write_text(
        WRANGLER_TOML + '\n[env.staging]\nname = "my-worker-staging"\n'
        '[env.staging.vars]\nSTAGE = "staging"\n'
    )

    context = gather_project_context(project, environ={"WRANGLER_ENV": "staging"})

    assert context.environment == "staging"
    assert context.worker_name == "my-worker-staging"
    assert context.bindings.vars == {"STAGE": "staging"}
    assert "env" not in context.wrangler_config


def test_unknown_environment_falls_back_to_defaults(project):
    (project / "wrangler.toml").write_text(WRANGLER_TOML)

    context = gather_project_context(project, environ={"WRANGLER_ENV": "nope"})

    assert context.environment == "nope"
    assert context.wrangler_config is None
    assert context.bindings.kv_namespaces == []


def test_durable_objects_and_queues(project):
    (project / "wrangler.json").write_text(json.dumps({
        "durable_objects": {"bindings": [{"name": "ROOM", "class_name": "Room"}]},
        "queues": {"producers": [{"binding": "Q", "queue": "jobs"}]},
        "ai": {"binding": "AI"},
    }))

    bindings = gather_project_context(project, environ={}).bindings

    assert bindings.durable_objects == [{"name": "ROOM", "class_name": "Room"}]
    assert bindings.queues == {"producers": [{"binding": "Q", "queue": "jobs"}], "consumers": []}
    assert bindings.ai == {"binding": "AI"}
    assert bindings.browser is None


def test_jsonc_comments_and_trailing_commas(tmp_path):
    path = tmp_path / "wrangler.jsonc"
    path.write_text(
        '{\n'
        '  // the worker\n'
        '  "name": "w", /* inline */\n'
        '  "main": "https://example.com/x.js",\n'
        '  "vars": {"A": "1",},\n'
        '}\n'
    )

    raw = read_raw_config(path)

    assert raw == {"name": "w", "main": "https://example.com/x.js", "vars": {"A": "1"}}


def test_strip_jsonc_keeps_string_contents():
    text = '{"a": "// not a comment", "b": "x,}", "c": "q\\"/*"}'
    assert json.loads(strip_jsonc(text)) == {"a": "// not a comment", "b": "x,}", "c": 'q"/*'}


def test_normalize_rejects_non_list_bindings():
    with pytest.raises(ConfigReadError):
        normalize_config({"d1_databases": "DB"})


def test_context_wire_round_trip(project):
    (project / "wrangler.toml").write_text(WRANGLER_TOML)
    context = gather_project_context(project, environ={})

    wire = context.to_dict()

    assert wire["projectRoot"] == str(project.resolve())
    assert wire["schemaVersion"] == 1
    assert "environment" not in wire
    assert ProjectContext.from_dict(wire) == context
