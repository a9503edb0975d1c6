"""Tests for platesearch.reader module."""

import json

import pytest

from platesearch import MemberRecord
from platesearch.reader import (
    detect_encoding,
    is_valid_plate,
    load_roster,
    normalize_whitespace,
    parse_member_flag,
    read_members,
    read_members_json,
    records_from_rows,
)

HEADER = 'First Name,Last Name,Member,Car Type,Car Manufacturer,Plate Number\n'


def _row(**kwargs) -> dict:
    """Create a raw roster row with defaults."""
    defaults = {
        'First Name': 'John', 'Last Name': 'Smith', 'Member': 'Y',
        'Car Type': 'Sedan', 'Car Manufacturer': 'Jaguar', 'Plate Number': 'ABC-1234',
    }
    defaults.update(kwargs)
    return defaults


class TestDetectEncoding:
    """Tests for encoding detection."""

    def test_utf16le_bom(self, tmp_path):
        f = tmp_path / 'members.csv'
        f.write_bytes(b'\xff\xfe' + HEADER.encode('utf-16-le'))
        assert detect_encoding(f) == 'utf-16-le'

    def test_utf8_fallback(self, data_dir):
        assert detect_encoding(data_dir / 'members_data.csv') == 'utf-8-sig'


class TestNormalizeWhitespace:
    """Tests for whitespace normalization."""

    def test_strips_leading_trailing(self):
        assert normalize_whitespace('  ABC-1234  ') == 'ABC-1234'

    def test_collapses_multiple_spaces(self):
        assert normalize_whitespace('  Mary  Ann ') == 'Mary Ann'

    def test_unicode_whitespace(self):
        # U+2006 = Six-Per-Em Space
        assert normalize_whitespace('a\u2006b') == 'a b'


class TestParseMemberFlag:
    """Tests for the Member column."""

    @pytest.mark.parametrize('value', ['Y', 'y', 'Yes', 'TRUE', '1', ' Y ', True])
    def test_active(self, value):
        assert parse_member_flag(value) is True

    @pytest.mark.parametrize('value', ['N', 'no', 'false', '0', '', None, False])
    def test_not_active(self, value):
        assert parse_member_flag(value) is False


class TestIsValidPlate:
    """Tests for upload plate formats."""

    @pytest.mark.parametrize('plate', ['ABC-1234', '123-ABC', 'AB1-234', 'abcd-12', 'GJ-01-AB-1234'])
    def test_accepted(self, plate):
        assert is_valid_plate(plate)

    @pytest.mark.parametrize('plate', ['ABC1234', 'A-1234', 'ABCDE-12', 'GJ-1-AB-1234', 'AB C-12'])
    def test_rejected(self, plate):
        assert not is_valid_plate(plate)


class TestRecordsFromRows:
    """Tests for row conversion."""

    def test_basic_row(self):
        records = records_from_rows([_row()])
        assert records == [MemberRecord(
            first_name='John', last_name='Smith', plate_number='ABC-1234',
            manufacturer='Jaguar', car_type='Sedan', is_active_member=True,
        )]

    def test_car_number_column_detected(self):
        row = _row()
        row['Car Number'] = row.pop('Plate Number')
        assert records_from_rows([row])[0].plate_number == 'ABC-1234'

    def test_explicit_plate_column(self):
        row = _row(Registration='KLM-4521')
        records = records_from_rows([row], plate_column='Registration')
        assert records[0].plate_number == 'KLM-4521'

    def test_unknown_plate_column_raises(self):
        with pytest.raises(ValueError, match='Kennzeichen-Spalte'):
            records_from_rows([_row()], plate_column='Registration')

    def test_missing_columns_raise(self):
        row = _row()
        del row['Car Type']
        with pytest.raises(ValueError, match='Fehlende Spalten'):
            records_from_rows([row])

    def test_row_without_name_skipped(self):
        records = records_from_rows([_row(**{'Last Name': ''}), _row()])
        assert len(records) == 1

    def test_empty_plate_kept(self):
        records = records_from_rows([_row(**{'Plate Number': ''})])
        assert records[0].plate_number == ''

    def test_values_normalized(self):
        records = records_from_rows([_row(**{'First Name': '  Mary  Ann ', 'Member': ' n '})])
        assert records[0].first_name == 'Mary Ann'
        assert records[0].is_active_member is False


class TestReadMembers:
    """Tests for reading member CSV files."""

    def test_sample_count(self, members):
        assert len(members) == 10

    def test_first_member(self, members):
        m = members[0]
        assert isinstance(m, MemberRecord)
        assert m.first_name == 'John'
        assert m.last_name == 'Smith'
        assert m.plate_number == 'ABC-1234'
        assert m.manufacturer == 'Jaguar'
        assert m.car_type == 'Sedan'
        assert m.is_active_member is True

    def test_inactive_member(self, members):
        thomas = next(m for m in members if m.first_name == 'Thomas')
        assert thomas.is_active_member is False

    def test_sample_plates_are_valid(self, data_dir):
        members = read_members(data_dir / 'members_data.csv', validate_plates=True)
        assert len(members) == 10

    def test_utf16_file(self, tmp_path):
        f = tmp_path / 'members.csv'
        content = HEADER + 'Jürgen,Müller,Y,SUV,Audi,AUD-1001\n'
        f.write_bytes(b'\xff\xfe' + content.encode('utf-16-le'))
        members = read_members(f)
        assert members[0].last_name == 'Müller'

    def test_invalid_plate_rejected(self, tmp_path):
        f = tmp_path / 'members.csv'
        f.write_text(HEADER + 'John,Smith,Y,Sedan,Jaguar,ABC1234\n', encoding='utf-8')
        with pytest.raises(ValueError, match='Zeile 2'):
            read_members(f, validate_plates=True)

    def test_invalid_plate_accepted_without_validation(self, tmp_path):
        f = tmp_path / 'members.csv'
        f.write_text(HEADER + 'John,Smith,Y,Sedan,Jaguar,ABC1234\n', encoding='utf-8')
        assert read_members(f)[0].plate_number == 'ABC1234'

    def test_missing_file_raises(self):
        with pytest.raises(FileNotFoundError):
            read_members('nonexistent.csv')

    def test_empty_file_raises(self, tmp_path):
        f = tmp_path / 'empty.csv'
        f.write_text('', encoding='utf-8')
        with pytest.raises(ValueError, match='leer'):
            read_members(f)

    def test_missing_columns_raises(self, tmp_path):
        f = tmp_path / 'bad.csv'
        f.write_text('Col1,Col2\na,b\n', encoding='utf-8')
        with pytest.raises(ValueError, match='Fehlende Spalten'):
            read_members(f)


class TestReadMembersJson:
    """Tests for reading member JSON files."""

    def test_list_payload(self, tmp_path):
        f = tmp_path / 'members.json'
        f.write_text(json.dumps([_row(), _row(Member=False)]), encoding='utf-8')
        members = read_members_json(f)
        assert [m.is_active_member for m in members] == [True, False]

    def test_api_payload(self, tmp_path):
        f = tmp_path / 'members.json'
        f.write_text(json.dumps({'success': True, 'data': [_row()], 'count': 1}), encoding='utf-8')
        assert read_members_json(f)[0].plate_number == 'ABC-1234'

    def test_wrong_shape_raises(self, tmp_path):
        f = tmp_path / 'members.json'
        f.write_text(json.dumps({'data': 'nope'}), encoding='utf-8')
        with pytest.raises(ValueError):
            read_members_json(f)

    def test_load_roster_dispatch(self, tmp_path, data_dir):
        f = tmp_path / 'members.json'
        f.write_text(json.dumps([_row()]), encoding='utf-8')
        assert len(load_roster(f)) == 1
        assert len(load_roster(data_dir / 'members_data.csv')) == 10
