from __future__ import annotations

from pathlib import Path

from fishbiomass.cli import main as cli_main
from fishbiomass.logging.init import reset_logging


def test_debug_flag_enables_debug_output(write_config, survey_workbooks, temp_workdir: Path, capsys):
    reset_logging()
    code = cli_main(["--debug"])
    out = capsys.readouterr().out
    reset_logging()
    assert code == 0
    assert "DEBUG debug mode enabled" in out
    assert "DEBUG grid normalized rows=3 columns=24 flagged=1 malformed=0" in out


def test_no_debug_output_by_default(write_config, survey_workbooks, temp_workdir: Path, capsys):
    reset_logging()
    assert cli_main([]) == 0
    assert "DEBUG" not in capsys.readouterr().out
