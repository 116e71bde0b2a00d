import os
from pathlib import Path
import subprocess
import sys

from surveysync.config import ProviderSettings


def _base_env(tmp_path: Path) -> dict[str, str]:
    env = os.environ.copy()
    for name in ProviderSettings.ENV_NAMES.values():
        env.pop(name, None)
    env["DATABASE_URL"] = f"sqlite:///{tmp_path / 'cli.db'}"
    env["REQUEST_TIMEOUT_SECONDS"] = "2"
    return env


def test_cli_exits_before_network_on_missing_configuration(tmp_path: Path) -> None:
    env = _base_env(tmp_path)
    env["VOXCO_BASE_URL"] = "http://127.0.0.1:9"

    proc = subprocess.run(
        [sys.executable, "-m", "surveysync.main", "run"],
        cwd=Path(__file__).resolve().parents[1],
        env=env,
        check=False,
        capture_output=True,
        text=True,
    )

    assert proc.returncode == 2
    assert "VOXCO_USERNAME" in proc.stderr
    assert "state=" not in proc.stdout


def test_cli_returns_nonzero_when_provider_unreachable(tmp_path: Path) -> None:
    env = _base_env(tmp_path)
    env.update(
        {
            "VOXCO_BASE_URL": "http://127.0.0.1:9",
            "VOXCO_AUTH_PATH": "authentication/user",
            "VOXCO_USERNAME": "sync-user",
            "VOXCO_PASSWORD": "s3cret",
            "VOXCO_CONTEXT": "Sus",
            "VOXCO_PROJECT_ID": "103",
            "VOXCO_RESPONDENTS_PATH": "projects/{projectId}/respondents/filter",
            "VOXCO_RESPONSES_PATH": "projects/{projectId}/respondents/{id}/responses",
        }
    )

    proc = subprocess.run(
        [sys.executable, "-m", "surveysync.main", "run", "--run-key", "cli-unreachable"],
        cwd=Path(__file__).resolve().parents[1],
        env=env,
        check=False,
        capture_output=True,
        text=True,
    )

    assert proc.returncode == 1
    assert "run_key=cli-unreachable state=aborted aborted_at=authenticating" in proc.stdout
