import sys
import os

# Add scripts to path for the launcher module
scripts_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'scripts')
if scripts_path not in sys.path:
    sys.path.insert(0, scripts_path)

import run_api


def test_reload_is_opt_in():
    command = run_api.build_command()
    assert "--reload" not in command
    assert command[1:4] == ["-m", "uvicorn", "vat_pricing.api.main:app"]
    assert command[-4:] == ["--host", "127.0.0.1", "--port", "8000"]

    assert run_api.build_command("0.0.0.0", 9000, reload=True)[-5:] == [
        "--host", "0.0.0.0", "--port", "9000", "--reload"
    ]


def test_src_is_prepended_to_pythonpath():
    src_path = str(run_api.PROJECT_ROOT / "src")

    assert run_api.build_env({})["PYTHONPATH"] == src_path
    assert run_api.build_env({"PYTHONPATH": "/opt/lib"})["PYTHONPATH"] == f"{src_path}{os.pathsep}/opt/lib"


def test_main_passes_arguments_to_uvicorn(monkeypatch):
    calls = []
    monkeypatch.setattr(run_api.subprocess, "run", lambda command, **kwargs: calls.append((command, kwargs)))

    run_api.main(["--port", "8080", "--reload"])

    command, kwargs = calls[0]
    assert command == run_api.build_command("127.0.0.1", 8080, True)
    assert kwargs["cwd"] == run_api.PROJECT_ROOT
