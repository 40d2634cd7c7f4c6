from __future__ import annotations

import json

from contractdesk.ai.parsing import (
    extract_json_text,
    load_json_object,
    parse_analysis,
    parse_chunk_analysis,
    parse_extracted_fields,
)
from contractdesk.domain.analysis import NOT_SPECIFIED, ContractAnalysis

ANALYSIS = {
    "summary": "Maintenance contract with monthly payments.",
    "keyTerms": {
        "parties": ["Acme Ltda", "Beta SA"],
        "value": "R$ 120.000,00",
        "startDate": "01/01/2025",
        "endDate": "31/12/2025",
        "duration": "12 months",
    },
    "riskAnalysis": {"highRisk": [], "mediumRisk": ["Vague SLA"], "lowRisk": ["Typos"]},
    "clauses": {"payment": ["Monthly"], "termination": [], "liability": [], "other": []},
    "recommendations": ["Define SLA penalties"],
    "score": 78,
}


def test_extract_json_prefers_fenced_block():
    text = 'Here you go:\n```json\n{"a": 1}\n```\nand {"b": 2}'
    assert extract_json_text(text) == '{"a": 1}'


def test_extract_json_falls_back_to_outer_object():
    text = 'Sure! {"a": {"b": 2}} Hope this helps.'
    assert extract_json_text(text) == '{"a": {"b": 2}}'


def test_extract_json_none_without_object():
    assert extract_json_text("") is None
    assert extract_json_text("no json here") is None


def test_load_json_object_reports_invalid_json():
    result = load_json_object("{not json}")
    assert not result.ok
    assert result.error.message.startswith("Invalid JSON")
    assert result.error.raw_text == "{not json}"


def test_parse_analysis_from_fenced_answer():
    text = f"Analysis below\n```json\n{json.dumps(ANALYSIS)}\n```"

    result = parse_analysis(text)

    assert result.ok
    analysis = result.value
    assert analysis.score == 78
    assert analysis.key_terms.parties == ["Acme Ltda", "Beta SA"]
    assert analysis.key_terms.start_date == "01/01/2025"
    assert analysis.risk_analysis.medium_risk == ["Vague SLA"]
    assert analysis.risk_analysis.level == "medium"
    assert analysis.clauses.payment == ["Monthly"]


def test_parse_analysis_fills_missing_keys_with_defaults():
    result = parse_analysis('{"summary": "Short", "keyTerms": {"value": null}}')

    assert result.ok
    analysis = result.value
    assert analysis.summary == "Short"
    assert analysis.key_terms.value == NOT_SPECIFIED
    assert analysis.key_terms.parties == []
    assert analysis.recommendations == []
    assert analysis.score == 0
    assert analysis.risk_analysis.level == "low"


def test_parse_analysis_clamps_score():
    assert parse_analysis('{"score": 140}').value.score == 100
    assert parse_analysis('{"score": -3}').value.score == 0
    assert parse_analysis('{"score": "72.6"}').value.score == 73
    assert parse_analysis('{"score": "n/a"}').value.score == 0


def test_parse_analysis_failure_unwraps_to_fallback():
    result = parse_analysis("The model refused to answer.")

    assert not result.ok
    analysis = result.unwrap_or(ContractAnalysis.fallback(result.error.message))
    assert analysis.score == 0
    assert analysis.summary.startswith("Analysis error:")
    assert analysis.risk_analysis.level == "high"


def test_parse_analysis_rejects_wrong_shape():
    result = parse_analysis('{"recommendations": "not a list"}')
    assert not result.ok
    assert "Unexpected response shape" in result.error.message


def test_parse_chunk_analysis():
    text = json.dumps(
        {
            "section": "Payment clauses",
            "keyPoints": ["Monthly invoices"],
            "risks": {"high": ["No late fee cap"]},
            "incomplete": True,
        }
    )

    result = parse_chunk_analysis(text)

    assert result.ok
    assert result.value.section == "Payment clauses"
    assert result.value.key_points == ["Monthly invoices"]
    assert result.value.risks.high == ["No late fee cap"]
    assert result.value.risks.low == []
    assert result.value.incomplete is True


def test_parse_extracted_fields_flattens_location_and_drops_nulls():
    text = json.dumps(
        {
            "supplier": "Acme Ltda",
            "flow_type": "RE",
            "contract_value": 150000,
            "installments": None,
            "location": {"state": "SP", "city": "São Paulo"},
            "due_date": "2025-12-31",
        }
    )

    result = parse_extracted_fields(text)

    assert result.ok
    fields = result.value
    assert fields.supplier == "Acme Ltda"
    assert fields.contract_value == 150000.0
    assert fields.installments == 0
    assert fields.state == "SP"
    assert fields.city == "São Paulo"
    assert fields.due_date == "2025-12-31"


def test_parse_analysis_null_fields_take_defaults():
    result = parse_analysis('{"summary": "Lease", "recommendations": null, "score": 80}')

    assert result.ok
    assert result.value.summary == "Lease"
    assert result.value.recommendations == []
    assert result.value.score == 80


def test_parse_analysis_null_summary_and_risk_list():
    text = json.dumps(
        {
            "summary": None,
            "score": 70,
            "riskAnalysis": {"highRisk": None, "mediumRisk": ["Vague SLA"]},
            "clauses": {"payment": None},
            "keyTerms": None,
        }
    )

    result = parse_analysis(text)

    assert result.ok
    analysis = result.value
    assert analysis.summary == "Summary not available"
    assert analysis.risk_analysis.high_risk == []
    assert analysis.risk_analysis.level == "medium"
    assert analysis.clauses.payment == []
    assert analysis.key_terms.value == NOT_SPECIFIED


def test_parse_analysis_blank_summary_takes_default():
    assert parse_analysis('{"summary": "  ", "score": 50}').value.summary == "Summary not available"


def test_parse_chunk_analysis_null_risks():
    result = parse_chunk_analysis('{"section": "Termination", "risks": null, "keyPoints": null}')

    assert result.ok
    assert result.value.risks.high == []
    assert result.value.key_points == []
