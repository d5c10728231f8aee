"""
Tests for the signal extractors, versioned weights and the combiner.
"""

import pytest

from conftest import JOB_SHEET_TEXT, MULTI_PAGE_TEXTS
from template_selector.document import DocumentMetadata, FormType
from template_selector.signals.base import (
    ConfidenceBand,
    SignalResult,
    SignalType,
    confidence_from_score,
    format_signals,
    round_half_up,
)
from template_selector.signals.combiner import combine_signals
from template_selector.signals.layout_signal import extract_layout_signal
from template_selector.signals.plausibility_signal import extract_plausibility_signal
from template_selector.signals.roi_signal import extract_roi_signal
from template_selector.signals.token_signal import extract_token_signal, max_token_score
from template_selector.signals.weights import DEFAULT_WEIGHTS, VersionedWeights
from template_selector.templates.template import (
    FieldExpectation,
    LayoutExpectations,
    RoiBounds,
    RoiConfig,
    RoiRegion,
    SelectionConfig,
    create_template,
)
from template_selector.text.tokenizer import tokenize_document


def signal(signal_type, score):
    return SignalResult(signal_type, score, 0.0, confidence_from_score(score))


class TestScoreHelpers:
    """Tests for rounding and banding."""

    def test_round_half_up(self):
        assert round_half_up(0.5) == 1
        assert round_half_up(2.5) == 3
        assert round_half_up(88.235) == 88
        assert round_half_up(61.538) == 62

    def test_confidence_bands(self):
        assert confidence_from_score(100) == ConfidenceBand.HIGH
        assert confidence_from_score(80) == ConfidenceBand.HIGH
        assert confidence_from_score(79) == ConfidenceBand.MEDIUM
        assert confidence_from_score(50) == ConfidenceBand.MEDIUM
        assert confidence_from_score(49) == ConfidenceBand.LOW
        assert confidence_from_score(0) == ConfidenceBand.LOW

    def test_custom_thresholds(self):
        assert confidence_from_score(85, high_threshold=90, medium_threshold=60) == ConfidenceBand.MEDIUM

    def test_band_acceptability(self):
        assert ConfidenceBand.HIGH.is_acceptable
        assert ConfidenceBand.MEDIUM.is_acceptable
        assert not ConfidenceBand.LOW.is_acceptable

    def test_format_signals(self):
        signals = [signal(SignalType.TOKEN, 20), signal(SignalType.ROI, 0)]
        assert format_signals(signals) == 'token:20, roi:0'


class TestTokenSignal:
    """Tests for the token fingerprint signal."""

    def setup_method(self):
        self.config = create_template(
            'tpl-job-sheet', 'job-sheet',
            required_all=['job', 'sheet'],
            required_any=['repair', 'maintenance'],
            optional=['signature', 'customer'],
        ).selection_config

    def score(self, text, config=None):
        return extract_token_signal(tokenize_document(text), config or self.config)

    def test_full_match(self):
        result = self.score(JOB_SHEET_TEXT)
        assert result.signal_type == SignalType.TOKEN
        assert result.score == 100
        assert result.confidence == ConfidenceBand.HIGH
        assert result.evidence.matched == (
            'job', 'sheet', 'maintenance', 'optional:signature', 'optional:customer',
        )
        assert result.evidence.missing == ()

    def test_missing_required_all_penalty(self):
        result = self.score("job maintenance customer")
        assert result.score == 24
        assert 'sheet' in result.evidence.missing

    def test_missing_required_any_penalty(self):
        result = self.score("job sheet customer signature")
        assert result.score == 14
        assert 'ANY(repair, maintenance)' in result.evidence.missing

    def test_incidental_tokens_stay_low(self):
        result = self.score("JOB APPLICATION FORM - Sheet Metal Worker")
        assert result.score == 0
        assert result.confidence == ConfidenceBand.LOW

    def test_empty_document(self):
        assert self.score("").score == 0

    def test_form_code_regex_bonus(self):
        config = SelectionConfig(required_tokens_all=('job',), form_code_regex=r'job \d+')
        result = self.score("Job 42", config)
        assert result.score == 100
        assert r'REGEX:job \d+' in result.evidence.matched

    def test_form_code_regex_is_case_insensitive(self):
        config = SelectionConfig(required_tokens_all=('job',), form_code_regex=r'JOB \d+')
        assert self.score("job 42", config).score == 100

    def test_invalid_regex_counts_as_no_match(self):
        config = SelectionConfig(required_tokens_all=('job',), form_code_regex='(')
        result = self.score("job 42", config)
        assert result.score == 40
        assert 'regex_error' in result.evidence.details
        assert 'REGEX:(' in result.evidence.missing

    def test_max_token_score(self):
        config = SelectionConfig(
            required_tokens_all=('a', 'b'),
            required_tokens_any=('c', 'd'),
            optional_tokens=('e',),
            form_code_regex='x',
        )
        assert max_token_score(config) == 42

    def test_max_token_score_uses_configured_weights(self):
        config = SelectionConfig(
            required_tokens_all=('a', 'b'),
            required_tokens_any=('c', 'd'),
            token_weights={'c': 8},
        )
        assert max_token_score(config) == 28

    def test_empty_config_scores_zero(self):
        assert self.score("anything", SelectionConfig()).score == 0

    def test_score_never_exceeds_100(self):
        config = SelectionConfig(required_tokens_all=('job',), required_tokens_any=('repair', 'service'))
        assert self.score("job repair service", config).score == 100


class TestLayoutSignal:
    """Tests for the layout signal."""

    def test_no_expectations_is_neutral(self):
        result = extract_layout_signal(DocumentMetadata(page_count=1))
        assert result.score == 50
        assert result.confidence == ConfidenceBand.MEDIUM
        assert result.evidence.details['reason'] == 'No layout expectations defined'

    def test_page_count_in_range(self):
        result = extract_layout_signal(DocumentMetadata(page_count=2), LayoutExpectations(min_pages=1, max_pages=2))
        assert result.score == 70

    def test_page_count_out_of_range(self):
        result = extract_layout_signal(DocumentMetadata(page_count=5), LayoutExpectations(min_pages=1, max_pages=2))
        assert result.score == 30
        assert result.evidence.missing == ('pageCount:5 (expected 1-2)',)

    def test_open_page_range_defaults(self):
        result = extract_layout_signal(DocumentMetadata(page_count=11), LayoutExpectations(min_pages=2))
        assert result.score == 30

    def test_sections_fraction(self):
        metadata = DocumentMetadata(page_count=1, detected_sections=('header',))
        result = extract_layout_signal(metadata, LayoutExpectations(expected_sections=('Header', 'Parts')))
        assert result.score == 65
        assert 'section:Header' in result.evidence.matched
        assert 'section:Parts' in result.evidence.missing

    def test_sections_ignored_without_detection(self):
        result = extract_layout_signal(DocumentMetadata(page_count=1), LayoutExpectations(expected_sections=('Header',)))
        assert result.score == 50

    def test_form_type_mismatch(self):
        metadata = DocumentMetadata(page_count=1, form_type=FormType.HANDWRITTEN)
        result = extract_layout_signal(metadata, LayoutExpectations(form_type=FormType.PRINTED))
        assert result.score == 40

    def test_clamped_to_100(self):
        metadata = DocumentMetadata(page_count=1, detected_sections=('a',), form_type=FormType.PRINTED)
        expected = LayoutExpectations(min_pages=1, max_pages=1, expected_sections=('a',), form_type=FormType.PRINTED)
        assert extract_layout_signal(metadata, expected).score == 100


class TestRoiSignal:
    """Tests for the region-of-interest signal."""

    def setup_method(self):
        bounds = RoiBounds(x=0.0, y=0.0, width=1.0, height=0.2)
        self.config = RoiConfig(regions=(
            RoiRegion('header', 1, bounds, ('jobNumber',)),
            RoiRegion('signature', 2, bounds, ('customerSignature',)),
        ))
        self.bounds = bounds

    def test_no_config_is_neutral(self):
        assert extract_roi_signal("text", ("text",)).score == 50
        assert extract_roi_signal("text", ("text",), RoiConfig()).score == 50

    def test_all_regions_found(self):
        result = extract_roi_signal('\n'.join(MULTI_PAGE_TEXTS), MULTI_PAGE_TEXTS, self.config)
        assert result.score == 100
        assert result.evidence.details['matched_regions'] == 2

    def test_missing_page_counts_as_empty(self):
        text = MULTI_PAGE_TEXTS[0]
        result = extract_roi_signal(text, (text,), self.config)
        assert result.score == 50
        assert result.evidence.missing == ('roi:signature (page 2)',)

    def test_region_without_fields_needs_content(self):
        config = RoiConfig(regions=(RoiRegion('body', 1, self.bounds),))
        assert extract_roi_signal('x' * 51, ('x' * 51,), config).score == 100
        assert extract_roi_signal('short', ('short',), config).score == 0


class TestPlausibilitySignal:
    """Tests for the field plausibility signal."""

    def test_no_fields_is_neutral(self):
        assert extract_plausibility_signal("text", ()).score == 50

    def test_all_fields_plausible(self):
        fields = (
            FieldExpectation('dateOfService', 'date'),
            FieldExpectation('serialNumber', 'pattern', r'SN-\d{5}'),
            FieldExpectation('customerSignature', 'required'),
        )
        text = "Date: 01/02/2026\nSerial: sn-12345\nCustomer Signature: __"
        result = extract_plausibility_signal(text, fields)
        assert result.score == 100

    def test_partial_fields(self):
        fields = (
            FieldExpectation('dateOfService', 'date'),
            FieldExpectation('workDescription', 'string'),
            FieldExpectation('meterReading', 'number'),
        )
        result = extract_plausibility_signal("Work performed on 3.4.26", fields)
        assert result.score == 67
        assert result.evidence.missing == ('field:meterReading',)

    def test_pattern_type_without_pattern(self):
        result = extract_plausibility_signal("SN-12345", (FieldExpectation('serialNumber', 'regex'),))
        assert result.score == 0

    def test_invalid_pattern_recorded(self):
        result = extract_plausibility_signal("anything", (FieldExpectation('code', 'pattern', '('),))
        assert result.score == 0
        assert 'code' in result.evidence.details['pattern_errors']


class TestVersionedWeights:
    """Tests for the versioned weight set."""

    def test_defaults(self):
        weights = VersionedWeights()
        assert weights.version == '1.0.0'
        assert weights.token + weights.layout + weights.roi + weights.plausibility == pytest.approx(1.0)
        assert weights.weight_for(SignalType.ROI) == 0.25

    def test_overrides_mark_version(self):
        custom = DEFAULT_WEIGHTS.with_overrides({'token': 0.6})
        assert custom.token == 0.6
        assert custom.version == '1.0.0-custom'
        assert custom.with_overrides({'roi': 0.1}).version == '1.0.0-custom'

    def test_empty_overrides_return_same(self):
        assert DEFAULT_WEIGHTS.with_overrides(None) is DEFAULT_WEIGHTS
        assert DEFAULT_WEIGHTS.with_overrides({}) is DEFAULT_WEIGHTS

    def test_unknown_override_rejected(self):
        with pytest.raises(ValueError):
            DEFAULT_WEIGHTS.with_overrides({'colour': 0.5})

    def test_out_of_range_rejected(self):
        with pytest.raises(ValueError):
            VersionedWeights(token=1.5)
        with pytest.raises(ValueError):
            DEFAULT_WEIGHTS.with_overrides({'layout': -0.1})

    def test_from_dict_partial(self):
        weights = VersionedWeights.from_dict({'token': 0.5, 'version': '2.0.0'})
        assert weights.token == 0.5
        assert weights.layout == 0.20
        assert weights.version == '2.0.0'


class TestCombiner:
    """Tests for the weighted signal combiner."""

    def test_weighted_average(self):
        signals = [
            signal(SignalType.TOKEN, 100),
            signal(SignalType.LAYOUT, 70),
            signal(SignalType.ROI, 100),
            signal(SignalType.PLAUSIBILITY, 100),
        ]
        result = combine_signals(signals)
        assert result.combined_score == 94
        assert result.confidence == ConfidenceBand.HIGH
        assert result.signal_count == 4
        assert result.high_confidence_signals == 3
        assert result.weak_signals == ()

    def test_weights_come_from_weight_set(self):
        result = combine_signals([SignalResult(SignalType.TOKEN, 80, 0.99, ConfidenceBand.HIGH)])
        assert result.signals[0].weight == 0.40
        assert result.combined_score == 80

    def test_partial_signals_renormalized(self):
        result = combine_signals([signal(SignalType.TOKEN, 100), signal(SignalType.ROI, 0)])
        assert result.combined_score == 62
        assert result.confidence == ConfidenceBand.MEDIUM
        assert result.weak_signals == (SignalType.ROI,)
        assert [s.signal_type for s in result.weak_signal_results] == [SignalType.ROI]

    def test_no_signals(self):
        result = combine_signals([])
        assert result.combined_score == 0
        assert result.confidence == ConfidenceBand.LOW

    def test_zero_total_weight(self):
        overrides = {'token': 0.0, 'layout': 0.0, 'roi': 0.0, 'plausibility': 0.0}
        result = combine_signals([signal(SignalType.TOKEN, 100)], overrides=overrides)
        assert result.combined_score == 0
        assert result.confidence == ConfidenceBand.LOW

    def test_overrides(self):
        signals = [signal(SignalType.TOKEN, 90), signal(SignalType.ROI, 10)]
        result = combine_signals(signals, overrides={'roi': 0.0})
        assert result.combined_score == 90
        assert result.weights_used.version.endswith('-custom')

    def test_get_signal(self):
        result = combine_signals([signal(SignalType.TOKEN, 90)])
        assert result.get_signal(SignalType.TOKEN).score == 90
        assert result.get_signal(SignalType.LAYOUT) is None

    def test_to_dict(self):
        data = combine_signals([signal(SignalType.TOKEN, 30)]).to_dict()
        assert data['combined_evidence']['weak_signals'] == ['token']
        assert data['signals'][0]['type'] == 'token'
