"""
Tests for the CosmosMind CLI.
"""

import json
import os
import subprocess
import sys
import tempfile


def _run(*args, home=None):
    env = dict(os.environ)
    env["COSMOS_HOME"] = home or tempfile.mkdtemp()
    return subprocess.run(
        [sys.executable, "-m", "cosmosmind.cli", *args],
        capture_output=True, text=True, env=env,
    )


def test_version():
    """cosmosmind --version prints version."""
    from cosmosmind.config import SERVER_VERSION
    result = _run("--version")
    assert result.returncode == 0
    assert SERVER_VERSION in result.stdout


def test_help_lists_commands():
    result = _run("--help")
    assert result.returncode == 0
    for cmd in ("serve", "profile", "record", "reflect", "history", "sectors", "export", "import", "reset"):
        assert cmd in result.stdout


def test_unknown_command():
    result = _run("dance")
    assert result.returncode == 0
    assert "Unknown command: dance" in result.stdout
    assert "cosmosmind serve" in result.stdout


def test_record_then_profile():
    home = tempfile.mkdtemp()
    summary = json.dumps({"sectorId": "genesis", "accuracy": 0.8, "roundsPlayed": 10,
                          "responseTime": 900, "duration": 120})
    result = _run("record", summary, home=home)
    assert result.returncode == 0, result.stderr
    assert "Sessions: 1" in result.stdout
    assert os.path.exists(os.path.join(home, "save.json"))

    profile = _run("profile", home=home)
    assert "Sessions: 1" in profile.stdout
    assert "Lifetime accuracy: 80.0%" in profile.stdout

    history = _run("history", "5", home=home)
    assert "genesis" in history.stdout
    assert "Accuracy trend: [80]" in history.stdout


def test_record_rejects_bad_json():
    result = _run("record", "{oops")
    assert result.returncode == 1
    assert "Invalid JSON" in result.stdout


def test_reflect():
    stats = json.dumps({"trials": 10, "accuracy": 0.9, "avgResponseTime": 1000, "peakStreak": 10})
    result = _run("reflect", stats)
    assert result.returncode == 0, result.stderr
    assert "Peak Streak: 10" in result.stdout


def test_sectors():
    result = _run("sectors")
    assert result.returncode == 0
    assert "GENESIS" in result.stdout
    assert "open" in result.stdout
    assert "locked" in result.stdout


def test_export_import_reset():
    home = tempfile.mkdtemp()
    _run("record", json.dumps({"accuracy": 1.0, "roundsPlayed": 4}), home=home)
    out = os.path.join(home, "backup.json")
    assert _run("export", out, home=home).returncode == 0
    assert json.loads(open(out, encoding="utf-8").read())["playerMind"]["totalSessions"] == 1

    refused = _run("reset", home=home)
    assert "--yes" in refused.stdout
    assert "Sessions: 1" in _run("profile", home=home).stdout

    assert "Save reset." in _run("reset", "--yes", home=home).stdout
    assert "Sessions: 0" in _run("profile", home=home).stdout

    restored = _run("import", out, home=home)
    assert restored.returncode == 0
    assert "Sessions: 1" in _run("profile", home=home).stdout


def test_import_missing_file():
    result = _run("import", "/nonexistent/cosmos_backup.json")
    assert result.returncode == 1
    assert "Cannot read" in result.stdout


def test_corrupt_save_warns_on_stderr():
    home = tempfile.mkdtemp()
    with open(os.path.join(home, "save.json"), "w", encoding="utf-8") as f:
        f.write("{broken")
    result = _run("profile", home=home)
    assert result.returncode == 0, result.stderr
    assert "Sessions: 0" in result.stdout
    assert "unreadable" in result.stderr
    assert os.path.exists(os.path.join(home, "cosmosmind.log"))
