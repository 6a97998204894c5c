"""
Tests for configuration loading and the command-line tool.
"""

import json

import pytest

from results_ingest.config import DEFAULT_CONFIG, load_config
from results_ingest.ingest import ResultsIngester, format_summary, main
from tests.builders import (
    NEW_FORMAT,
    STANDARD_COMPETITOR,
    make_html,
    make_oe_csv,
    make_oe_row,
    single_course,
)


# =============================================================================
# Configuration
# =============================================================================

class TestLoadConfig:
    """Tests for reading settings from YAML."""

    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(tmp_path / 'missing.yaml')
        assert config == DEFAULT_CONFIG
        assert config is not DEFAULT_CONFIG

    def test_bundled_config(self):
        config = load_config()
        assert config['parsers'] == ['oe_csv', 'html']
        assert config['encoding'] == 'utf-8'

    def test_partial_override(self, tmp_path):
        """Settings not in the file keep their defaults, even inside nested sections."""
        config_file = tmp_path / 'ingest.yaml'
        config_file.write_text('parsers:\n  - html\nlogging:\n  level: DEBUG\n')

        config = load_config(config_file)
        assert config['parsers'] == ['html']
        assert config['logging']['level'] == 'DEBUG'
        assert config['webapp']['max_upload_mb'] == 16
        assert config['encoding'] == 'utf-8'

    def test_empty_file(self, tmp_path):
        config_file = tmp_path / 'ingest.yaml'
        config_file.write_text('')
        assert load_config(config_file) == DEFAULT_CONFIG

    def test_not_a_mapping(self, tmp_path):
        config_file = tmp_path / 'ingest.yaml'
        config_file.write_text('- just\n- a\n- list\n')
        with pytest.raises(ValueError):
            load_config(config_file)


# =============================================================================
# Ingester
# =============================================================================

class TestResultsIngester:
    """Tests for reading results through the configured parsers."""

    def test_configured_parser_order(self):
        """Only the configured parsers are tried."""
        from results_ingest.exceptions import WrongFileFormat

        config = dict(DEFAULT_CONFIG, parsers=['oe_csv'])
        html = make_html(NEW_FORMAT, single_course([STANDARD_COMPETITOR]))
        with pytest.raises(WrongFileFormat):
            ResultsIngester(config).ingest_text(html)

    def test_named_parser(self):
        html = make_html(NEW_FORMAT, single_course([STANDARD_COMPETITOR]))
        event = ResultsIngester(dict(DEFAULT_CONFIG)).ingest_text(html, 'html')
        assert len(event.classes) == 1

    def test_ingest_file_with_encoding(self, tmp_path):
        results_file = tmp_path / 'results.csv'
        results_file.write_bytes(make_oe_csv([make_oe_row(club='Åbo OK')]).encode('latin-1'))

        event = ResultsIngester(dict(DEFAULT_CONFIG)).ingest_file(str(results_file), encoding='latin-1')
        assert event.classes[0].results[0].owner.club == 'Åbo OK'


class TestFormatSummary:
    def test_summary(self):
        event = ResultsIngester(dict(DEFAULT_CONFIG)).ingest_text(make_oe_csv([make_oe_row()]))
        summary = format_summary(event)
        assert 'Course Course 1 (2.7 km, 35 m, 3 controls)' in summary
        assert '  Class Class 1: 1 results' in summary

    def test_summary_lists_warnings(self):
        rows = [make_oe_row(), make_oe_row(class_name='', forename='Fred', surname='Jones')]
        event = ResultsIngester(dict(DEFAULT_CONFIG)).ingest_text(make_oe_csv(rows))
        summary = format_summary(event)
        assert '1 warnings:' in summary
        assert "Could not find a class for competitor 'Fred Jones'" in summary


# =============================================================================
# Command line
# =============================================================================

class TestMain:
    """Tests for the command-line entry point."""

    def test_summary_output(self, tmp_path, capsys):
        results_file = tmp_path / 'results.csv'
        results_file.write_text(make_oe_csv([make_oe_row()]))

        assert main([str(results_file)]) == 0
        assert 'Class Class 1: 1 results' in capsys.readouterr().out

    def test_json_output(self, tmp_path, capsys):
        results_file = tmp_path / 'results.html'
        results_file.write_text(make_html(NEW_FORMAT, single_course([STANDARD_COMPETITOR])))

        assert main([str(results_file), '--json', '--format', 'html']) == 0
        event = json.loads(capsys.readouterr().out)
        assert event['courses'][0]['name'] == 'Test course 1'
        assert event['classes'][0]['results'][0]['total_time'] == 565
        assert event['classes'][0]['results'][0]['status'] == 'ok'

    def test_missing_file(self, tmp_path):
        assert main([str(tmp_path / 'missing.csv')]) == 1

    def test_unreadable_file(self, tmp_path):
        results_file = tmp_path / 'results.txt'
        results_file.write_text('Nothing to see here\n')
        assert main([str(results_file)]) == 1

    def test_unknown_format(self, tmp_path):
        results_file = tmp_path / 'results.csv'
        results_file.write_text(make_oe_csv([make_oe_row()]))
        assert main([str(results_file), '--format', 'iof_xml']) == 1
