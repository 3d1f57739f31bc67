"""Tests for the munin output."""

from certexpiry.core.config import FieldThresholds
from certexpiry.models import EvaluationResult, Target
from certexpiry.output import clean_fieldname, render_config, render_values


def test_clean_fieldname():
    assert clean_fieldname("example.com_443") == "example_com_443"
    assert clean_fieldname("192.0.2.10_993_imap") == "_92_0_2_10_993_imap"
    assert clean_fieldname("mail-1.example.com_25_smtp") == "mail_1_example_com_25_smtp"


def test_render_config_header_and_labels():
    targets = [Target.parse("example.com"), Target.parse("mail.example.com_25_smtp")]

    output = render_config(targets)

    lines = output.splitlines()
    assert lines[0] == "graph_title SSL Certificates Expiration"
    assert "graph_vlabel days left" in lines
    assert "graph_category security" in lines
    assert "example_com_443.label example.com_443" in lines
    assert "mail_example_com_25_smtp.label mail.example.com_25_smtp" in lines
    assert output.endswith("\n")


def test_render_config_thresholds():
    thresholds = {
        "example_com_443": FieldThresholds(warning="30:", critical="7:"),
        "other_example_443": FieldThresholds(warning="60:"),
    }
    output = render_config(
        [Target.parse("example.com"), Target.parse("other.example")], thresholds
    )

    lines = output.splitlines()
    assert "example_com_443.warning 30:" in lines
    assert "example_com_443.critical 7:" in lines
    assert "other_example_443.warning 60:" in lines
    assert not any(line.startswith("other_example_443.critical") for line in lines)


def test_render_values():
    results = [
        EvaluationResult.valid("example.com_443", 45.2049),
        EvaluationResult.valid("old.example_443", -5.0),
        EvaluationResult.unavailable("down.example_443", "Connection refused"),
    ]

    assert render_values(results) == (
        "example_com_443.value 45.20\n"
        "old_example_443.value -5.00\n"
        "down_example_443.value U\n"
    )


def test_hostname_mismatch_alerts_with_extinfo():
    result = EvaluationResult.hostname_mismatch(
        "example.com_443",
        "Hostname mismatch: certificate for\nother.example does not cover example.com",
    )

    assert render_values([result]) == (
        "example_com_443.value -1\n"
        "example_com_443.extinfo Hostname mismatch: certificate for "
        "other.example does not cover example.com\n"
    )


def test_render_values_empty():
    assert render_values([]) == ""
