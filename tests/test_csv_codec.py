"""
Unit tests for CSV import and export
"""
from datetime import date, datetime

import pytest

from agenda_timer.csv_codec import (
    BOM,
    DATA_HEADER,
    dump_data,
    dump_template,
    export_filename,
    format_timestamp,
    parse_data,
    parse_int,
    parse_template,
    parse_timestamp,
    round_minutes,
    split_name,
)
from agenda_timer.models import Activity, ActivityStatus


@pytest.mark.unit
class TestPrimitives:
    """Test low level parsing helpers."""

    def test_parse_int_is_lenient(self):
        assert parse_int("10") == 10
        assert parse_int(" 10 min") == 10
        assert parse_int("-3") == -3
        assert parse_int("abc") is None
        assert parse_int("") is None

    def test_round_minutes_half_up(self):
        assert round_minutes(90) == 2
        assert round_minutes(89) == 1
        assert round_minutes(150) == 3

    def test_parse_timestamp(self):
        assert parse_timestamp("19/10/2026 09:05:30") == datetime(2026, 10, 19, 9, 5, 30)
        assert parse_timestamp("19/10/2026 09:05") == datetime(2026, 10, 19, 9, 5, 0)
        assert parse_timestamp("-") is None
        assert parse_timestamp("") is None
        assert parse_timestamp("19/10/2026") is None
        assert parse_timestamp("31/02/2026 09:00") is None
        assert parse_timestamp("aa/10/2026 09:00") is None

    def test_format_timestamp(self):
        assert format_timestamp(datetime(2026, 1, 2, 3, 4, 5)) == "02/01/2026 03:04:05"
        assert format_timestamp(None) == ""

    def test_split_name_quoted(self):
        assert split_name('"Budget, Q4 ""draft""",10,,,') == ('Budget, Q4 "draft"', "10,,,")

    def test_split_name_unquoted(self):
        assert split_name("Budget,10,,,") == ("Budget", "10,,,")
        assert split_name("Budget") is None
        assert split_name('"Budget') is None


@pytest.mark.unit
class TestTemplate:
    """Test the template dialect."""

    def test_parse_without_header(self):
        result = parse_template('10,"Apertura"\n5,Budget\n\n0,"Zero"\nabc,"Bad"\n7,')

        assert [(a.name, a.planned_duration) for a in result.activities] == [
            ("Apertura", 600),
            ("Budget", 300),
        ]
        assert result.skipped == 3
        assert all(a.status is ActivityStatus.PENDING for a in result.activities)

    def test_parse_with_header(self):
        text = '"Attività","Tempo Previsto (min)"\n"Apertura, saluti",10\nBudget,5\n"",3'
        result = parse_template(text)

        assert [(a.name, a.planned_duration) for a in result.activities] == [
            ("Apertura, saluti", 600),
            ("Budget", 300),
        ]
        assert result.skipped == 1

    def test_quoted_name_with_escaped_quotes(self):
        result = parse_template('3,"Il ""piano"""')
        assert result.activities[0].name == 'Il "piano"'

    def test_dump_has_bom_and_no_header(self):
        activities = [
            Activity(id="a", name='Il "piano"', planned_duration=600),
            Activity(id="b", name="Budget, Q4", planned_duration=89),
        ]
        text = dump_template(activities)

        assert text.startswith(BOM)
        assert text[len(BOM):].split("\n") == ['10,"Il ""piano"""', '1,"Budget, Q4"']

    def test_round_trip(self):
        activities = [
            Activity(id="a", name="Apertura", planned_duration=600),
            Activity(id="b", name='Budget, "Q4"', planned_duration=1200),
            Activity(id="c", name="Chiusura", planned_duration=60),
        ]
        result = parse_template(dump_template(activities))

        assert [(a.name, a.planned_duration) for a in result.activities] == [
            (a.name, a.planned_duration) for a in activities
        ]
        assert len({a.id for a in result.activities}) == 3

    def test_empty_input(self):
        result = parse_template("")
        assert result.imported == 0


@pytest.mark.unit
class TestData:
    """Test the full data dialect."""

    def test_pending_row_with_only_planned(self):
        result = parse_data('"Task, 10 min",10,-,-,-')

        activity = result.activities[0]
        assert activity.name == "Task, 10 min"
        assert activity.planned_duration == 600
        assert activity.status is ActivityStatus.PENDING
        assert activity.actual_duration is None

    def test_row_with_three_fields_after_name_is_skipped(self):
        result = parse_data('"Task, 10 min","-","-","-"')

        assert result.activities == []
        assert result.skipped == 1
        assert result.message.startswith("Nessuna attività valida")

    def test_completed_by_actual_only(self):
        activity = parse_data("Budget,10,12,,").activities[0]

        assert activity.status is ActivityStatus.COMPLETED
        assert activity.actual_duration == 720
        assert activity.start_time is None

    def test_completed_by_timestamps(self):
        line = '"Budget",10,,19/10/2026 09:00:00,19/10/2026 09:11:30'
        activity = parse_data(line).activities[0]

        assert activity.status is ActivityStatus.COMPLETED
        assert activity.actual_duration == 690
        assert activity.end_time == datetime(2026, 10, 19, 9, 11, 30)

    def test_timestamps_win_over_rounded_minutes(self):
        line = '"Budget",10,12,19/10/2026 09:00:00,19/10/2026 09:11:30'
        activity = parse_data(line).activities[0]
        assert activity.actual_duration == 690

    def test_pending_row_drops_lonely_timestamp(self):
        activity = parse_data('"Budget",10,,19/10/2026 09:00:00,').activities[0]

        assert activity.status is ActivityStatus.PENDING
        assert activity.start_time is None

    def test_header_and_skips(self):
        text = "\n".join(
            [
                DATA_HEADER,
                '"Apertura",5,6,19/10/2026 09:00:00,19/10/2026 09:06:00',
                "senza-campi,5",
                '"",5,,,',
                '"non chiuso,5,,,',
                '"Fine prima",5,,19/10/2026 10:00:00,19/10/2026 09:00:00',
                '"Ok",7,,,',
            ]
        )
        result = parse_data(text)

        assert [a.name for a in result.activities] == ["Apertura", "Ok"]
        assert result.skipped == 4
        assert result.message == "2 attività importate con successo."

    def test_no_rows_gives_guidance(self):
        result = parse_data(DATA_HEADER + "\nbroken")

        assert result.imported == 0
        assert DATA_HEADER in result.message

    def test_crlf_and_bom(self):
        text = BOM + DATA_HEADER + '\r\n"Apertura",5,,,\r\n'
        result = parse_data(text)

        assert [a.name for a in result.activities] == ["Apertura"]

    def test_dump_format(self):
        activities = [
            Activity(
                id="a",
                name="Apertura, saluti",
                planned_duration=300,
                actual_duration=390,
                start_time=datetime(2026, 10, 19, 9, 0),
                end_time=datetime(2026, 10, 19, 9, 6, 30),
                status=ActivityStatus.COMPLETED,
            ),
            Activity(id="b", name="Budget", planned_duration=600),
        ]
        lines = dump_data(activities)[len(BOM):].split("\n")

        assert lines == [
            DATA_HEADER,
            '"Apertura, saluti",5,7,19/10/2026 09:00:00,19/10/2026 09:06:30',
            '"Budget",10,,,',
        ]

    def test_round_trip(self):
        activities = [
            Activity(
                id="a",
                name='Apertura "ufficiale", saluti',
                planned_duration=300,
                actual_duration=390,
                start_time=datetime(2026, 10, 19, 9, 0),
                end_time=datetime(2026, 10, 19, 9, 6, 30),
                status=ActivityStatus.COMPLETED,
            ),
            Activity(
                id="b",
                name="Budget",
                planned_duration=600,
                actual_duration=480,
                status=ActivityStatus.COMPLETED,
            ),
            Activity(id="c", name="Chiusura", planned_duration=120),
        ]
        imported = parse_data(dump_data(activities)).activities

        def key(a):
            return (a.name, a.planned_duration, a.actual_duration, a.start_time, a.end_time, a.status)

        assert [key(a) for a in imported] == [key(a) for a in activities]


@pytest.mark.unit
def test_export_filename():
    assert export_filename("dati_riunione", date(2026, 10, 19)) == "dati_riunione_2026-10-19.csv"
    assert export_filename("grafico_riunione", date(2026, 10, 19), "png") == "grafico_riunione_2026-10-19.png"
