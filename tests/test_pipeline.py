from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from typer.testing import CliRunner

from pagecraft import config
from pagecraft.main import app
from pagecraft.models import RenderStatus, init_db, reset_engine
from pagecraft.pipeline import run
from pagecraft.pipeline.ingest import load_jobs, parse_job
from pagecraft.pipeline.run import load_theme, run_batch
from pagecraft.storage import list_renders, output_path

CHALLAN_JOB = {
    "type": "challan",
    "company": {"name": "Sharma Weaving Mills", "city": "Surat"},
    "record": {
        "challan_number": "DC-7",
        "issue_date": "2024-03-01",
        "due_date": "2024-03-31",
        "status": "Open",
        "party": {"party_name": "Mehta Textiles"},
        "items": [{"quality_name": "Rayon", "ordered_meters": 10, "calculated_amount": 420}],
        "totals": {"subtotal_amount": 420, "total_meters": 10},
    },
}

PARTY_JOB = {
    "type": "party",
    "record": {"party_name": "Mehta Textiles", "party_code": "PTY-1", "credit_limit": 5000},
    "options": {"date_range": "30d"},
}


class PipelineTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.out = Path(self.temp_dir.name)
        config.set_out_dir(self.out)
        reset_engine()

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def _write_jobs(self, data) -> Path:
        path = self.out / "jobs.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    def test_load_jobs_accepts_object_or_list(self) -> None:
        self.assertEqual(len(load_jobs(self._write_jobs(CHALLAN_JOB))), 1)
        jobs = load_jobs(self._write_jobs([CHALLAN_JOB, PARTY_JOB]))
        self.assertEqual([job.type for job in jobs], ["challan", "party"])
        self.assertEqual(jobs[0].doc_number, "DC-7")
        self.assertEqual(jobs[1].label, "party:PTY-1")

    def test_load_jobs_rejects_bad_input(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_jobs(self.out / "missing.json")
        with self.assertRaises(ValueError):
            load_jobs(self._write_jobs([]))
        bad = self.out / "bad.json"
        bad.write_text("{not json", encoding="utf-8")
        with self.assertRaises(ValueError):
            load_jobs(bad)
        with self.assertRaises(ValueError):
            parse_job({"type": "invoice", "record": {}})
        with self.assertRaises(ValueError):
            parse_job({"type": "challan"})
        with self.assertRaises(ValueError):
            parse_job({"type": "challan", "record": {}, "options": []})

    def test_output_path_rejects_traversal(self) -> None:
        with self.assertRaises(ValueError):
            output_path("../escape.pdf", "challan")
        self.assertEqual(output_path("a.pdf", "Challan"), self.out / "challan" / "a.pdf")

    def test_batch_writes_documents_and_ledger(self) -> None:
        jobs = load_jobs(self._write_jobs([CHALLAN_JOB, PARTY_JOB]))
        results = run_batch(jobs, watermark="DRAFT")
        self.assertEqual(len(results["READY"]), 2)
        self.assertEqual(results["FAILED"], [])
        for relative in results["READY"]:
            self.assertTrue((self.out / relative).read_bytes().startswith(b"%PDF"))

        records = list_renders()
        self.assertEqual([r.doc_type for r in records], ["party", "challan"])
        self.assertTrue(all(r.status == RenderStatus.READY for r in records))
        self.assertTrue(all(r.page_count >= 1 for r in records))
        self.assertEqual(records[1].path, "challan/Challan_DC_7_Mehta_Textiles.pdf")

    def test_failed_job_is_recorded(self) -> None:
        def boom(job, theme):
            raise RuntimeError("renderer exploded")

        original = run.TEMPLATES["challan"]
        run.TEMPLATES["challan"] = boom
        try:
            results = run_batch(load_jobs(self._write_jobs([CHALLAN_JOB, PARTY_JOB])))
        finally:
            run.TEMPLATES["challan"] = original

        self.assertEqual(results["FAILED"], ["challan:DC-7"])
        self.assertEqual(len(results["READY"]), 1)
        failed = list_renders(status=RenderStatus.FAILED)
        self.assertEqual(len(failed), 1)
        self.assertEqual(failed[0].fail_code, "RENDER_ERROR")
        self.assertEqual(failed[0].fail_detail, "renderer exploded")
        self.assertIsNone(failed[0].path)

    def test_viewer_error_does_not_stop_the_batch(self) -> None:
        opened = []

        def flaky_viewer(document, path):
            opened.append(path.name)
            if len(opened) == 1:
                raise OSError("no viewer available")

        with self.assertLogs("pagecraft.pipeline.run", level="ERROR") as logs:
            results = run_batch(load_jobs(self._write_jobs([CHALLAN_JOB, PARTY_JOB])), on_rendered=flaky_viewer)

        self.assertEqual(len(opened), 2)
        self.assertEqual(len(results["READY"]), 2)
        self.assertEqual(results["FAILED"], [])
        self.assertTrue(any("Post-render hook failed for challan:DC-7" in line for line in logs.output))
        records = list_renders()
        self.assertEqual(len(records), 2)
        self.assertTrue(all(r.status == RenderStatus.READY for r in records))

    def test_preview_failure_keeps_document_ready(self) -> None:
        def broken_previews(path):
            raise RuntimeError("rasteriser crashed")

        original = run.render_previews
        run.render_previews = broken_previews
        try:
            with self.assertLogs("pagecraft.pipeline.run", level="ERROR"):
                results = run_batch(load_jobs(self._write_jobs([CHALLAN_JOB])), previews=True)
        finally:
            run.render_previews = original

        self.assertEqual(len(results["READY"]), 1)
        self.assertTrue((self.out / results["READY"][0]).exists())
        self.assertEqual(list_renders(status=RenderStatus.FAILED), [])

    def test_batch_renders_loom_documents(self) -> None:
        jobs = [
            {"type": "estimate", "record": {"quality_name": "Rayon 60x60", "current_version": 3, "total_cost": 28}},
            {
                "type": "production",
                "record": {
                    "id": "64f0c2abc123",
                    "quality_name": "Rayon 60x60",
                    "loom_params": {"rpm": 180, "pick": 60, "efficiency": 85, "machines": 4, "working_hours": 24},
                },
            },
            {
                "type": "Production_Entry",
                "record": {"entry_date": "2024-03-15", "shift": "Day", "meters_produced": 90, "total_hours": 8},
            },
        ]
        parsed = load_jobs(self._write_jobs(jobs))
        self.assertEqual([job.label for job in parsed][:2], ["estimate:Rayon 60x60 v3", "production:64f0c2abc123"])
        self.assertEqual(parsed[2].doc_number, "2024-03-15 Day")

        results = run_batch(parsed)
        self.assertEqual(results["FAILED"], [])
        self.assertEqual(
            sorted(results["READY"]),
            [
                "estimate/Estimate_Rayon_60x60_V3.pdf",
                "production/Production_Rayon_60x60_PRD_ABC123.pdf",
                "production_entry/ProductionEntry_15_03_2024_Day_Loom.pdf",
            ],
        )
        self.assertEqual({r.doc_type for r in list_renders()}, {"estimate", "production", "production_entry"})

    def test_theme_overrides(self) -> None:
        self.assertIs(load_theme(self.out / "none.json"), run.DEFAULT_THEME)
        path = self.out / "theme.json"
        path.write_text(
            json.dumps(
                {
                    "colors": {"primary": [1, 2, 3]},
                    "status_colors": {"open": {"bg": [1, 1, 1], "text": [2, 2, 2], "border": [3, 3, 3]}},
                }
            ),
            encoding="utf-8",
        )
        theme = load_theme(path)
        self.assertEqual(theme.color("primary"), (1, 2, 3))
        self.assertEqual(theme.status("Open").text, (2, 2, 2))
        self.assertEqual(theme.color("danger"), run.DEFAULT_THEME.color("danger"))

    def test_cli_render_and_history(self) -> None:
        runner = CliRunner()
        jobs = self._write_jobs([CHALLAN_JOB])
        result = runner.invoke(app, ["render", str(jobs), "--out", str(self.out)])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("READY: 1", result.output)
        self.assertIn("FAILED: 0", result.output)

        result = runner.invoke(app, ["history", "--out", str(self.out)])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("DC-7", result.output)

    def test_cli_reports_bad_job_file(self) -> None:
        result = CliRunner().invoke(app, ["render", str(self.out / "missing.json"), "--out", str(self.out)])
        self.assertEqual(result.exit_code, 2)

    def test_history_when_empty(self) -> None:
        init_db()
        result = CliRunner().invoke(app, ["history", "--out", str(self.out)])
        self.assertIn("No renders recorded", result.output)


if __name__ == "__main__":
    unittest.main()
