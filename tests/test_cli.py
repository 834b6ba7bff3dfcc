import logging

import pytest

import cli
from algo.config import MiningConfig


@pytest.fixture
def src(tmp_path, corpus_lines):
    path = tmp_path / "input.txt"
    path.write_text("\n".join(corpus_lines) + "\n", encoding="utf-8")
    return path


def test_main_writes_rules(tmp_path, src, capsys):
    dst = tmp_path / "rules.txt"

    code = cli.main([str(src), str(dst), "--min-utility", "15", "--min-confidence", "0.5"])

    assert code == 0
    lines = dst.read_text(encoding="utf-8").splitlines()
    assert "1\t==> 5\t#SUP: 4\t#CONF: 1.0\t#UTIL: 15.0" in lines
    assert f"Rules: {len(lines)}" in capsys.readouterr().out


def test_strategy_flags_map_to_config():
    args = cli.build_parser().parse_args(
        ["in.txt", "out.txt", "--no-prune-items", "--sorted-lists", "--loose-bounds", "--max-sequences", "3"])
    config = cli.config_from_args(args)
    assert not config.prune_items
    assert config.prune_pairs
    assert not config.use_bit_vectors
    assert not config.tight_bounds
    assert config.max_sequences == 3


def test_invalid_config_exits_with_error(tmp_path, src, capsys):
    code = cli.main([str(src), str(tmp_path / "rules.txt"), "--max-antecedent", "0"])
    assert code == 1
    assert "max_antecedent_size" in capsys.readouterr().err


def test_missing_input_exits_with_error(tmp_path, capsys):
    code = cli.main([str(tmp_path / "missing.txt"), str(tmp_path / "rules.txt")])
    assert code == 1
    assert capsys.readouterr().err.startswith("Error:")
    assert not (tmp_path / "rules.txt").exists()


def test_defaults_match_mining_config():
    config = cli.config_from_args(cli.build_parser().parse_args(["in.txt", "out.txt"]))
    assert config == MiningConfig()


@pytest.mark.parametrize("flags,level", [([], logging.INFO), (["-v"], logging.DEBUG)])
def test_verbose_switches_root_logger_to_debug(tmp_path, src, monkeypatch, flags, level):
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
    assert cli.main([str(src), str(tmp_path / "rules.txt"), "--min-utility", "15"] + flags) == 0
    assert calls[0]["level"] == level
