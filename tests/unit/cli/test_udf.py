from pathlib import Path

import orjson
import pytest

from udf_datafeed.cli.udf import EXIT_NOT_FOUND, EXIT_OK, EXIT_USAGE, build_parser, main


@pytest.fixture
def markets_file(tmp_path: Path, mixed_snapshot) -> Path:
    path = tmp_path / "markets.json"
    path.write_bytes(orjson.dumps(mixed_snapshot))
    return path


def _run(capsys, *argv: str) -> tuple[int, object]:
    code = main(list(argv))
    out = capsys.readouterr().out
    return code, orjson.loads(out) if out else None


def test_build_parser():
    p = build_parser()
    assert p.prog == "udf"
    args = p.parse_args(
        [
            "search",
            "EUR",
            "--markets",
            "m.json",
            "--type",
            "Forex",
            "--set",
            "datafeed.supports_search=false",
            "--set",
            "max_search_results=3",
        ]
    )
    assert args.command == "search"
    assert args.query == "EUR"
    assert args.symbol_type == "Forex"
    assert args.markets == Path("m.json")
    assert args.settings is None
    assert args.overrides == ["datafeed.supports_search=false", "max_search_results=3"]
    assert args.verbose is False


def test_bars_requires_range():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["bars", "R_50", "--markets", "m.json"])


def test_config_command(capsys, markets_file: Path):
    code, payload = _run(capsys, "config", "--markets", str(markets_file))

    assert code == EXIT_OK
    assert payload["supports_search"] is True
    assert [t["value"] for t in payload["symbols_types"]] == ["Forex", "Random", "Stocks"]


def test_search_command_group_mode(capsys, markets_file: Path):
    code, payload = _run(
        capsys,
        "search",
        "frxEUR",
        "--markets",
        str(markets_file),
        "--set",
        "datafeed.supports_search=false",
        "--set",
        "datafeed.supports_group_request=true",
    )

    assert code == EXIT_OK
    assert [r["symbol"] for r in payload] == ["frxEURNZD", "frxEURUSD"]


def test_resolve_command(capsys, markets_file: Path):
    code, payload = _run(capsys, "resolve", "R_100", "--markets", str(markets_file))

    assert code == EXIT_OK
    assert payload["name"] == "R_100"
    assert payload["session"] == "24x7"


def test_resolve_unknown_symbol(capsys, markets_file: Path):
    code, payload = _run(capsys, "resolve", "ZZZZZ", "--markets", str(markets_file))

    assert code == EXIT_NOT_FOUND
    assert payload == {"error": "unknown_symbol", "symbol": "ZZZZZ"}


def test_bars_command(capsys, markets_file: Path):
    code, payload = _run(
        capsys, "bars", "frxEURUSD", "--markets", str(markets_file), "--from", "150", "--to", "300"
    )

    assert code == EXIT_OK
    assert [b["time"] for b in payload["bars"]] == [200, 300]
    assert payload["meta"] == {"noData": False}


def test_bars_without_data(capsys, markets_file: Path):
    code, payload = _run(
        capsys, "bars", "R_50", "--markets", str(markets_file), "--from", "0", "--to", "10"
    )

    assert code == EXIT_NOT_FOUND
    assert payload == {"error": "no data for R_50"}


def test_invalid_configuration_is_usage_error(capsys, markets_file: Path):
    code = main(
        [
            "config",
            "--markets",
            str(markets_file),
            "--set",
            "datafeed.supports_search=false",
        ]
    )

    assert code == EXIT_USAGE
    assert "Must either support search" in capsys.readouterr().err


def test_missing_markets_file(capsys, tmp_path: Path):
    code = main(["config", "--markets", str(tmp_path / "missing.json")])

    assert code == EXIT_USAGE
    assert "Snapshot file not found" in capsys.readouterr().err


def test_telemetry_sink_written(capsys, markets_file: Path, tmp_path: Path):
    sink = tmp_path / "telemetry.jsonl"

    code = main(["resolve", "frxUSDJPY", "--markets", str(markets_file), "--telemetry", str(sink)])

    assert code == EXIT_OK
    events = [orjson.loads(line)["event"] for line in sink.read_text().splitlines()]
    assert events == ["initialization_finished", "configuration_ready"]


@pytest.mark.parametrize(
    "override, message",
    [
        ("datafeed.supports_search", "KEY=VALUE"),
        ("datafeed=1", None),
    ],
)
def test_malformed_override_is_usage_error(capsys, markets_file: Path, override, message):
    argv = ["config", "--markets", str(markets_file), "--set", override]
    if message is None:
        # Nested key under a scalar set by the first override
        argv += ["--set", "datafeed.supports_search=true"]

    code = main(argv)

    captured = capsys.readouterr()
    assert code == EXIT_USAGE
    assert captured.out == ""
    assert captured.err.startswith("error: ")
    if message is not None:
        assert message in captured.err


def test_string_boolean_override(capsys, markets_file: Path):
    code, payload = _run(
        capsys,
        "config",
        "--markets",
        str(markets_file),
        "--set",
        "datafeed.supports_search=False",
        "--set",
        "datafeed.supports_group_request=yes",
    )

    assert code == EXIT_OK
    assert payload["supports_search"] is False
    assert payload["supports_group_request"] is True
