from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from stagesync.domain.model import Batch
from stagesync.domain.staging import Action, TransportRequest, decode, encode_text
from stagesync.domain.staging.dispatch import PAYLOAD_KEY
from stagesync.ui import cli as cli_module

if TYPE_CHECKING:
    from pathlib import Path


def test_cli_draft_prints_batch_id(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    captured: dict[str, object] = {}

    def fake_save_draft(post_ids: list[int], **kwargs: object) -> int:
        captured["post_ids"] = post_ids
        captured.update(kwargs)
        return 7

    monkeypatch.setattr(cli_module, "save_draft", fake_save_draft)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["draft", "3", "4", "--title", "Launch", "--creator", "2"])

    assert excinfo.value.code == 0
    assert captured == {"post_ids": [3, 4], "title": "Launch", "creator_id": 2, "batch_id": None}
    assert capsys.readouterr().out.strip() == "7"


def test_cli_assemble_writes_envelope(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def fake_assemble(post_ids: list[int]) -> Batch:
        assert post_ids == [10]
        return Batch(guid="cli-guid")

    monkeypatch.setattr(cli_module, "assemble_batch", fake_assemble)
    output = tmp_path / "batch.txt"

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["assemble", "10", "--title", "From CLI", "--output", str(output)])

    assert excinfo.value.code == 0
    envelope = decode(output.read_text(encoding="ascii"))
    assert envelope.batch_guid == "cli-guid"
    assert envelope.batch_title == "From CLI"


def test_cli_assemble_stored_batch(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(
        cli_module, "assemble_stored_batch", lambda batch_id: Batch(guid=f"stored-{batch_id}")
    )

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["assemble", "--batch-id", "5"])

    assert excinfo.value.code == 0
    assert decode(capsys.readouterr().out).batch_guid == "stored-5"


def test_cli_assemble_requires_a_selection(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["assemble"])

    assert excinfo.value.code == 1
    assert "Provide post ids or --batch-id" in capsys.readouterr().err


def test_cli_receive_hands_payload_to_endpoint(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    requests: list[TransportRequest] = []

    def fake_handle(request: TransportRequest) -> dict[str, list[str]]:
        requests.append(request)
        return {"info": ["Batch has been successfully sent! Batch ID: 3"]}

    monkeypatch.setattr(cli_module, "handle_request", fake_handle)
    envelope_file = tmp_path / "batch.txt"
    envelope_file.write_text(encode_text(Batch(guid="g")) + "\n", encoding="ascii")

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["receive", str(envelope_file)])

    assert excinfo.value.code == 0
    assert requests[0].action == Action.SEND
    assert decode(str(requests[0].body[PAYLOAD_KEY])).batch_guid == "g"
    assert json.loads(capsys.readouterr().out) == {
        "info": ["Batch has been successfully sent! Batch ID: 3"]
    }


def test_cli_preflight_exits_non_zero_on_errors(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setattr(
        cli_module, "handle_request", lambda request: {"error": ["prod: Malformed batch payload"]}
    )
    envelope_file = tmp_path / "batch.txt"
    envelope_file.write_text("junk", encoding="ascii")

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["preflight", str(envelope_file)])

    assert excinfo.value.code == 1


def test_cli_reports_missing_files(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["receive", str(tmp_path / "missing.txt")])

    assert excinfo.value.code == 1
    assert capsys.readouterr().err.startswith("Error:")


def test_cli_rejects_unknown_command() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["publish"])

    assert excinfo.value.code == 2
