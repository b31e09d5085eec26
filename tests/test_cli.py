import json

import pytest

from simrng import cli


def test_sample_command_prints_json(capsys):
    code = cli.main(["sample", "--seed", "12345", "--kind", "uniform", "--param", "a=0", "--param", "b=1", "--count", "5"])

    out = json.loads(capsys.readouterr().out)
    assert code == 0
    assert out[0] == 1827552200 / 2 ** 32
    assert len(out) == 5


def test_sample_page(capsys):
    cli.main(["sample", "--seed", "1", "--kind", "uniform", "--param", "a=0", "--param", "b=1", "--count", "40", "--page", "2"])

    assert len(json.loads(capsys.readouterr().out)) == 10


def test_chi2_command(capsys):
    code = cli.main(["chi2", "--seed", "42", "--kind", "exponential", "--param", "lambda=2", "--count", "10000"])

    out = json.loads(capsys.readouterr().out)
    assert code == 0
    assert out["test"] == "chi_square"
    assert out["reject"] is False


def test_table_and_ks_commands(capsys):
    cli.main(["table", "--seed", "3", "--kind", "empirical", "--param", "weights=1,2,1", "--count", "200"])
    rows = json.loads(capsys.readouterr().out)
    assert sum(r["observed"] for r in rows) == 200

    cli.main(["ks", "--seed", "3", "--kind", "normal", "--param", "mean=0", "--param", "std=1", "--count", "100"])
    assert json.loads(capsys.readouterr().out)["test"] == "ks"


def test_typed_error_exit_code(capsys):
    code = cli.main(["sample", "--seed", "1", "--kind", "normal", "--param", "mean=0", "--param", "std=-1", "--count", "5"])

    err = capsys.readouterr().err
    assert code == 2
    assert err.startswith("error: invalid_parameter:")


def test_zero_count_exit_code(capsys):
    code = cli.main(["sample", "--seed", "1", "--kind", "uniform", "--param", "a=0", "--param", "b=1", "--count", "0"])

    assert code == 2
    assert "invalid_request" in capsys.readouterr().err


def test_malformed_list_parameter_is_a_usage_error(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["table", "--seed", "3", "--kind", "empirical", "--param", "weights=a,b", "--count", "20"])

    assert exc.value.code == 2
    assert "comma-separated list of numbers" in capsys.readouterr().err


def test_chi2_estimated_override(capsys):
    args = ["chi2", "--seed", "42", "--kind", "exponential", "--param", "lambda=2", "--count", "10000"]
    cli.main(args)
    default = json.loads(capsys.readouterr().out)
    cli.main(args + ["--estimated", "0"])
    fixed = json.loads(capsys.readouterr().out)

    assert default["degrees_of_freedom"] == 9
    assert fixed["degrees_of_freedom"] == 10
