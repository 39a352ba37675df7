"""Tests for royalty records, statement import and statement export."""

from __future__ import annotations

import io
import zipfile

import pandas as pd
import pytest

from hardban_lab.services.reports import normalize_column, parse_statement

PERIOD = {"platform": "Spotify", "period_start": "2024-01-01", "period_end": "2024-01-31"}

STATEMENT_CSV = (
    "Track Title,ISRC,Streams,Revenue\n"
    "Some Remix,PL-A12-24-00001,1000,4.00\n"
    "night drive,,500,2.50\n"
    "Ghost Song,,20,0.10\n"
).encode()


def add_royalty(client, headers, release_id, gross, net=None, **fields):
    payload = {
        "release_id": release_id,
        "platform": "Spotify",
        "period_start": "2024-01-01",
        "period_end": "2024-01-31",
        "gross_revenue": gross,
        **fields,
    }
    if net is not None:
        payload["net_revenue"] = net
    response = client.post("/api/music/royalties", json=payload, headers=headers)
    assert response.status_code == 201, response.json()
    return response.json()["royalty"]


def import_files(client, headers, files, **form):
    return client.post(
        "/api/music/royalties/import",
        files=[("files", f) for f in files],
        data={**PERIOD, **form},
        headers=headers,
    )


class TestRoyaltyRecords:
    def test_default_share_without_splits(self, client, user_headers, release):
        royalty = add_royalty(client, user_headers, release["id"], 100)

        assert royalty["net_revenue"] == 100.0
        assert royalty["artist_share"] == 50.0
        assert royalty["artist_payout"] == 50.0
        assert royalty["artist_payout_formatted"] == "$50.00"
        assert royalty["artist_id"] == release["artist_id"]
        assert royalty["status"] == "pending"

    def test_share_comes_from_artist_splits(self, client, user_headers, release):
        client.put(f"/api/music/releases/{release['id']}/splits", json={"splits": [
            {"name": "NOVA", "role": "artist", "percentage": 70},
            {"name": "Producer P", "role": "producer", "percentage": 20},
        ]}, headers=user_headers)

        royalty = add_royalty(client, user_headers, release["id"], 120, net=80)

        assert royalty["artist_share"] == 70.0
        assert royalty["artist_payout"] == 56.0

    def test_period_must_be_ordered(self, client, user_headers, release):
        response = client.post("/api/music/royalties", json={
            "release_id": release["id"],
            "period_start": "2024-02-01",
            "period_end": "2024-01-01",
            "gross_revenue": 1,
        }, headers=user_headers)
        assert response.status_code == 400

    def test_unknown_release(self, client, user_headers):
        response = client.post("/api/music/royalties", json={
            "release_id": 999, "period_start": "2024-01-01", "period_end": "2024-01-31", "gross_revenue": 1,
        }, headers=user_headers)
        assert response.status_code == 404

    def test_mark_paid_once(self, client, user_headers, release):
        royalty = add_royalty(client, user_headers, release["id"], 10)
        url = f"/api/music/royalties/{royalty['id']}/mark-paid"

        paid = client.post(url, headers=user_headers).json()["royalty"]
        assert paid["status"] == "paid"
        assert paid["payment_date"] is not None

        again = client.post(url, headers=user_headers)
        assert again.status_code == 409
        assert again.json()["message"] == "Royalty is already marked as paid"

    def test_list_and_summary(self, client, user_headers, release):
        first = add_royalty(client, user_headers, release["id"], 100)
        add_royalty(client, user_headers, release["id"], 40, platform="Deezer",
                    period_start="2024-02-01", period_end="2024-02-29")
        client.post(f"/api/music/royalties/{first['id']}/mark-paid", headers=user_headers)

        pending = client.get("/api/music/royalties?status=pending", headers=user_headers).json()
        assert pending["pagination"]["total"] == 1
        february = client.get("/api/music/royalties?period_start=2024-02-01", headers=user_headers).json()
        assert [r["platform"] for r in february["items"]] == ["Deezer"]

        summary = client.get(
            f"/api/music/royalties/summary?artist_id={release['artist_id']}", headers=user_headers,
        ).json()["summary"]
        assert summary["count"] == 2
        assert summary["total_gross"] == 140.0
        assert summary["total_payout"] == 70.0
        assert summary["paid"] == 50.0
        assert summary["pending"] == 20.0
        assert summary["by_platform"] == {"Deezer": 40.0, "Spotify": 100.0}
        assert summary["formatted"]["total_payout"] == "$70.00"


class TestStatementParsing:
    def test_columns_are_normalized(self):
        assert normalize_column(" Track Title ") == "track_title"
        assert normalize_column("Your Estimated Revenue (USD)") == "your_estimated_revenue__usd_"

    def test_net_falls_back_to_gross(self):
        df = pd.DataFrame({"track": ["A"], "streams": [3], "gross": ["1,000.50"]})
        records = parse_statement(df)
        assert records[0]["gross"] == records[0]["net"]
        assert str(records[0]["gross"]) == "1000.50"
        assert records[0]["streams"] == 3


class TestImport:
    def test_csv_import_matches_by_isrc_then_title(self, client, user_headers, ready_release):
        response = import_files(client, user_headers, [("spotify.csv", STATEMENT_CSV, "text/csv")])

        assert response.status_code == 200, response.json()
        body = response.json()
        assert body["parsed_records"] == 3
        assert body["matched_records"] == 2
        assert body["unmatched"] == ["Ghost Song"]
        assert body["royalties_created"] == 1
        assert body["total_gross"] == 6.5

        royalty = client.get("/api/music/royalties", headers=user_headers).json()["items"][0]
        assert royalty["streams"] == 1500
        assert royalty["artist_payout"] == 3.25
        release = client.get(f"/api/music/releases/{ready_release['id']}", headers=user_headers).json()["release"]
        assert release["streams"] == 1500
        assert release["revenue"] == 6.5
        overview = client.get("/api/music/analytics/overview", headers=user_headers).json()
        assert overview["total_streams"] == 1500

    def test_xlsx_and_tsv_files_in_one_import(self, client, user_headers, ready_release):
        workbook = io.BytesIO()
        pd.DataFrame({"Release Title": ["Night Drive"], "Units": [10], "Net Revenue": [1.25]}).to_excel(
            workbook, index=False, engine="xlsxwriter",
        )
        tsv = b"Song Name\tPlays\tRoyalty\nNight Drive\t5\t0.75\n"

        response = import_files(client, user_headers, [
            ("apple.xlsx", workbook.getvalue(), "application/octet-stream"),
            ("deezer.tsv", tsv, "text/tab-separated-values"),
        ])

        body = response.json()
        assert body["parsed_records"] == 2
        assert body["matched_records"] == 2
        assert body["royalties_created"] == 1
        assert body["total_net"] == 2.0

    @pytest.mark.parametrize(
        "filename, contents, content_type",
        [
            ("report.pdf", b"%PDF", "application/pdf"),
            ("legacy.xls", b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1", "application/vnd.ms-excel"),
        ],
    )
    def test_unsupported_format(self, client, user_headers, release, filename, contents, content_type):
        response = import_files(client, user_headers, [(filename, contents, content_type)])
        assert response.status_code == 400
        assert response.json()["message"] == "Unsupported report format"
        assert client.get("/api/music/royalties", headers=user_headers).json()["items"] == []

    def test_missing_form_fields(self, client, user_headers):
        response = client.post(
            "/api/music/royalties/import",
            files=[("files", ("spotify.csv", STATEMENT_CSV, "text/csv"))],
            headers=user_headers,
        )
        assert response.status_code == 400


class TestExport:
    def test_artist_statement_workbook(self, client, user_headers, release):
        add_royalty(client, user_headers, release["id"], 100)
        add_royalty(client, user_headers, release["id"], 20)

        response = client.get(f"/api/music/royalties/statements/{release['artist_id']}.xlsx", headers=user_headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith(
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
        assert f"NOVA_{release['artist_id']}_statement.xlsx" in response.headers["content-disposition"]
        sheets = pd.read_excel(io.BytesIO(response.content), sheet_name=None)
        assert set(sheets) == {"Royalties", "Summary"}
        assert list(sheets["Royalties"]["artist_payout"]) == [50.0, 10.0]

    def test_statement_for_missing_artist(self, client, user_headers):
        response = client.get("/api/music/royalties/statements/42.xlsx", headers=user_headers)
        assert response.status_code == 404

    def test_zip_of_all_statements(self, client, user_headers, release):
        add_royalty(client, user_headers, release["id"], 100)

        response = client.get("/api/music/royalties/statements.zip", headers=user_headers)

        assert response.status_code == 200
        with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
            names = archive.namelist()
            assert "00_SUMMARY.xlsx" in names
            assert f"NOVA_{release['artist_id']}_statement.xlsx" in names
            summary = pd.read_excel(io.BytesIO(archive.read("00_SUMMARY.xlsx")), sheet_name="Artists")
        assert list(summary["artist"]) == ["NOVA"]
        assert list(summary["artist_payout"]) == [50.0]

    def test_zip_rejects_reversed_period(self, client, user_headers):
        response = client.get(
            "/api/music/royalties/statements.zip?period_start=2024-03-01&period_end=2024-01-01", headers=user_headers,
        )
        assert response.status_code == 400
