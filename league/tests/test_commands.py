"""
Tests for the league management commands.
"""
import json
import tempfile
from io import StringIO
from pathlib import Path

from django.core.cache import caches
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import SimpleTestCase

from .factories import DEFAULT_SCORING


def match_doc(
    match_id,
    stage="Group",
    kickoff="2026-06-11T19:00:00Z",
    score=None,
    winner=None,
    decided_by=None,
    group="A",
    home="MEX",
    away="RSA",
):
    doc = {
        "id": match_id,
        "stage": stage,
        "kickoffUtc": kickoff,
        "status": "FINISHED" if score else "SCHEDULED",
        "homeTeam": {"code": home, "name": home},
        "awayTeam": {"code": away, "name": away},
    }
    if stage == "Group":
        doc["group"] = group
    if score:
        doc.update({"score": {"home": score[0], "away": score[1]}, "winner": winner, "decidedBy": decided_by})
    return doc


class CommandTestCase(SimpleTestCase):
    def setUp(self):
        caches["default"].clear()
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.data_dir = Path(self.tmp.name)

        self.write("scoring.json", DEFAULT_SCORING)
        self.write(
            "matches.json",
            {
                "lastUpdated": "2026-06-12T06:00:00.000Z",
                "matches": [
                    match_doc("M1", score=(2, 1), winner="HOME", decided_by="REGULAR"),
                    match_doc("M2", kickoff="2026-06-20T19:00:00Z"),
                    match_doc("M73", stage="R32", kickoff="2026-06-29T19:00:00Z"),
                ],
            },
        )
        self.write(
            "picks.json",
            {
                "picks": [
                    {
                        "userId": "ana",
                        "updatedAt": "2026-06-01T00:00:00.000Z",
                        "picks": [
                            {"matchId": "M1", "homeScore": 2, "awayScore": 1},
                            {"matchId": "M2", "homeScore": 1, "awayScore": 0},
                        ],
                    },
                    {
                        "userId": "ben",
                        "updatedAt": "2026-06-02T00:00:00.000Z",
                        "picks": [
                            {"matchId": "M1", "homeScore": 0, "awayScore": 1},
                            {"matchId": "M2", "homeScore": 0, "awayScore": 1},
                            {"matchId": "M73", "homeScore": 1, "awayScore": 1, "advances": "AWAY"},
                        ],
                    },
                ]
            },
        )
        self.write("members.json", {"members": [{"id": "ana", "name": "Ana"}, {"id": "cy", "name": "Cy"}]})

    def write(self, name, payload):
        (self.data_dir / name).write_text(json.dumps(payload), encoding="utf-8")

    def read(self, name):
        return json.loads((self.data_dir / name).read_text(encoding="utf-8"))


class UpdateLeaderboardCommandTest(CommandTestCase):
    def test_writes_leaderboard(self):
        self.write("bracket-points.json", {"points": {"cy": 4}})
        out = StringIO()
        call_command("update_leaderboard", data_dir=str(self.data_dir), stdout=out)

        data = self.read("leaderboard.json")
        self.assertEqual(data["lastUpdated"], "2026-06-12T06:00:00.000Z")
        self.assertEqual(
            [(e["member"]["id"], e["totalPoints"]) for e in data["entries"]],
            [("ana", 5), ("cy", 4), ("ben", 1)],
        )
        self.assertEqual(data["entries"][0]["exactCount"], 1)
        self.assertIsNone(data["bestThirds"])
        self.assertIn("(3 entries)", out.getvalue())

    def test_best_thirds_once_groups_are_finished(self):
        group_results = [
            ("A", "MEX", "RSA", (2, 1)),
            ("A", "MEX", "KOR", (1, 0)),
            ("A", "RSA", "KOR", (0, 0)),
            ("B", "CAN", "BIH", (3, 0)),
            ("B", "CAN", "QAT", (1, 1)),
            ("B", "BIH", "QAT", (2, 0)),
        ]
        self.write(
            "matches.json",
            {
                "lastUpdated": "2026-06-28T06:00:00.000Z",
                "matches": [
                    match_doc(f"G{index}", score=score, decided_by="REGULAR", group=group, home=home, away=away)
                    for index, (group, home, away, score) in enumerate(group_results, start=1)
                ],
            },
        )
        call_command("update_leaderboard", data_dir=str(self.data_dir), stdout=StringIO())
        self.assertEqual(self.read("leaderboard.json")["bestThirds"], ["KOR", "QAT"])

    def test_custom_output(self):
        output = self.data_dir / "out.json"
        call_command("update_leaderboard", data_dir=str(self.data_dir), output=str(output), stdout=StringIO())
        self.assertTrue(output.exists())
        self.assertFalse((self.data_dir / "leaderboard.json").exists())

    def test_missing_directory(self):
        with self.assertRaises(CommandError):
            call_command("update_leaderboard", data_dir=str(self.data_dir / "nope"), stdout=StringIO())

    def test_invalid_scoring(self):
        self.write("scoring.json", {"group": {"result": "two"}})
        with self.assertRaises(CommandError) as cm:
            call_command("update_leaderboard", data_dir=str(self.data_dir), stdout=StringIO())
        self.assertIn("scoring.json", str(cm.exception))


class ProjectLeaderboardCommandTest(CommandTestCase):
    def setUp(self):
        super().setUp()
        self.write(
            "leaderboard.json",
            {
                "lastUpdated": "2026-06-12T06:00:00.000Z",
                "entries": [
                    {"member": {"id": "ana", "name": "Ana"}, "totalPoints": 5},
                    {"member": {"id": "ben", "name": "Ben"}, "totalPoints": 1},
                ],
            },
        )

    def test_projects_outcomes(self):
        out = StringIO()
        call_command(
            "project_leaderboard",
            data_dir=str(self.data_dir),
            outcome=["M2=0-3", "M73=1-1:AWAY"],
            stdout=out,
        )
        lines = out.getvalue().splitlines()

        self.assertIn("Ben", lines[1])
        self.assertIn("+1", lines[1])
        self.assertIn("Projected 2 entries over 2 matches.", out.getvalue())

    def test_reports_rejected_outcomes(self):
        out = StringIO()
        call_command(
            "project_leaderboard",
            data_dir=str(self.data_dir),
            outcome=["M1=1-0", "M2", "M99=1-0", "M73=x"],
            stdout=out,
        )
        output = out.getvalue()
        for match_id in ("M1", "M2", "M99", "M73"):
            self.assertIn(f"Rejected {match_id}", output)
        self.assertIn("over 0 matches", output)

    def test_missing_leaderboard(self):
        (self.data_dir / "leaderboard.json").unlink()
        with self.assertRaises(CommandError):
            call_command("project_leaderboard", data_dir=str(self.data_dir), stdout=StringIO())


class SwingReportCommandTest(CommandTestCase):
    def test_lists_open_matches(self):
        out = StringIO()
        call_command("swing_report", data_dir=str(self.data_dir), now="2026-06-12T00:00:00Z", stdout=out)
        lines = out.getvalue().splitlines()

        self.assertEqual([line.split()[0] for line in lines], ["M2", "M73"])
        self.assertIn("consensus=MEX 50%", lines[0])
        self.assertIn("locks=2026-06-20T18:30:00.000Z", lines[0])

    def test_limit(self):
        out = StringIO()
        call_command("swing_report", data_dir=str(self.data_dir), now="2026-06-12T00:00:00Z", limit=1, stdout=out)
        self.assertEqual(len(out.getvalue().splitlines()), 1)

    def test_nothing_open(self):
        out = StringIO()
        call_command("swing_report", data_dir=str(self.data_dir), now="2026-07-30T00:00:00Z", stdout=out)
        self.assertIn("No open matches.", out.getvalue())

    def test_invalid_now(self):
        with self.assertRaises(CommandError):
            call_command("swing_report", data_dir=str(self.data_dir), now="tomorrow", stdout=StringIO())
