import pandas as pd

from bakery_forecast.cli import build_argument_parser, main, parse_candidates
from bakery_forecast.models import ModelOrder


def test_parse_candidates_defaults_follow_season_length():
    assert parse_candidates(None, 7) == [ModelOrder(0, 1, 1, 0, 1, 1, 7), ModelOrder(1, 1, 1, 0, 1, 1, 7)]
    assert parse_candidates(["2,1,0,0,1,1"], 7) == [ModelOrder(2, 1, 0, 0, 1, 1, 7)]


def test_parser_defaults():
    args = build_argument_parser().parse_args(["--sales-path", "sales.csv"])
    assert args.holdout_days == 84
    assert args.forecast_days == 28
    assert args.ljung_box_lag == 14
    assert args.confidence == 0.95


def test_main_writes_forecast_and_metrics(sales_csv, tmp_path, capsys):
    forecast_path = tmp_path / "forecast.csv"
    metrics_path = tmp_path / "metrics.csv"

    code = main(
        [
            "--sales-path",
            str(sales_csv),
            "--candidate",
            "1,1,1,0,1,1",
            "--significance",
            "0.01",
            "--forecast-output",
            str(forecast_path),
            "--metrics-output",
            str(metrics_path),
        ]
    )

    assert code == 0
    out = capsys.readouterr().out
    assert "Selected model: SARIMA(1,1,1)(0,1,1)[7]" in out

    written = pd.read_csv(forecast_path)
    assert list(written.columns) == ["date", "mean", "lower95", "upper95"]
    assert len(written) == 28
    assert pd.read_csv(metrics_path)["order"].tolist() == ["(1,1,1)(0,1,1)[7]"]


def test_main_reports_integrity_errors(write_csv, capsys):
    path = write_csv(
        pd.DataFrame(
            {
                "date": ["01/01/2023", "01/01/2023"],
                "sales": [60, 61],
                "weekday": ["Sunday", "Sunday"],
            }
        )
    )

    assert main(["--sales-path", str(path)]) == 1
    assert "Duplicate dates" in capsys.readouterr().err
