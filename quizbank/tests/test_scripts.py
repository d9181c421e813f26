"""Test the standalone helper scripts."""

import importlib.util
import json

from conftest import REPO_ROOT, mcq_row


def _load_script(name):
    path = REPO_ROOT / "scripts" / f"{name}.py"
    spec = importlib.util.spec_from_file_location(f"scripts_{name}", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_export_directory_writes_one_file_per_subject(tmp_path, write_csv, capsys):
    csv_to_json = _load_script("csv_to_json")
    write_csv("csv/bank.csv", [mcq_row("bio", "Cells", 1, "2"), mcq_row("chem", "Bonds", 2), mcq_row("bio", "", 3)])
    write_csv("csv/empty.csv", [])

    out_dir = tmp_path / "seed"
    counts = csv_to_json.export_directory(tmp_path / "csv", out_dir)

    assert counts == {"bio": 1, "chem": 1}
    bio = json.loads((out_dir / "bio.json").read_text(encoding="utf-8"))
    assert bio[0]["questionId"] == 1
    assert bio[0]["answer"] == [1]
    assert bio[0]["options"] == {"0": "A1", "1": "B1", "2": "C1", "3": "D1"}
    chem = json.loads((out_dir / "chem.json").read_text(encoding="utf-8"))
    assert chem[0]["questionId"] == 2

    out = capsys.readouterr().out
    assert "bank.csv line 4: missing:chapter" in out


def test_seed_writes_demo_subjects(store):
    seed_demo = _load_script("seed_demo")
    assert seed_demo.seed(store) == 2
    assert seed_demo.seed(store) == 2

    names = {s.id: s.name for s in store.find_subjects()}
    assert names == {"math": "Mathematics", "science": "Science"}
    [math] = store.find_questions("math")
    assert math.answer == [1]
    [science] = store.find_questions("science")
    assert science.answer == ["9.8"]
