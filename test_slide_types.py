"""
Tests for slide_types.py

Covers the data contract, outcome helpers, validators and request parsing.
"""

import pytest
import numpy as np
from pathlib import Path

from slide_types import (
    TransitionKind,
    EasingKind,
    ErrorKind,
    OutcomeStatus,
    TransitionSpec,
    KenBurnsSpec,
    SlideConfig,
    Slide,
    TimelineEntry,
    Timeline,
    RenderConfig,
    RenderOutcome,
    InvalidInputError,
    ImageLoadError,
    RenderSurfaceUnavailableError,
    RenderCancelledError,
    slide_from_config,
    parse_color,
    validate_render_config,
    validate_transition_spec,
    validate_ken_burns_spec,
    parse_transition,
    parse_ken_burns,
    parse_slide,
    parse_slideshow_request
)


@pytest.fixture
def minimal_request():
    return {
        'slides': [
            {'src': 'a.png', 'duration': 3, 'transition': {'type': 'fade', 'duration': 1}},
            {'src': 'b.png', 'duration': 2},
        ]
    }


class TestEnums:
    """Tests for wire names of the enumerations"""

    def test_sixteen_transition_kinds(self):
        assert len(TransitionKind) == 16

    def test_transition_wire_names(self):
        assert TransitionKind('slide-left') is TransitionKind.SLIDE_LEFT
        assert TransitionKind('zoom-out') is TransitionKind.ZOOM_OUT
        assert TransitionKind.NONE.value == 'none'

    def test_easing_wire_names(self):
        assert [e.value for e in EasingKind] == ['linear', 'ease-in', 'ease-out', 'ease-in-out']


class TestDataclasses:
    """Tests for slide and timeline data"""

    def test_transition_spec_default_easing(self):
        spec = TransitionSpec(TransitionKind.FADE, 1.0)
        assert spec.easing is EasingKind.EASE_IN_OUT

    def test_ken_burns_defaults(self):
        spec = KenBurnsSpec()
        assert spec.start_scale == 1.0
        assert spec.end_scale == 1.2
        assert spec.start_offset == (0.0, 0.0)

    def test_specs_are_frozen(self):
        spec = TransitionSpec(TransitionKind.FADE, 1.0)
        with pytest.raises(AttributeError):
            spec.duration = 2.0

    def test_slide_dimensions(self):
        slide = Slide(image=np.zeros((30, 40, 3), dtype=np.uint8), duration=1.0)
        assert slide.width == 40
        assert slide.height == 30

    def test_slide_from_config_copies_metadata(self):
        fade = TransitionSpec(TransitionKind.FADE, 0.5)
        config = SlideConfig('x.png', 2.0, fade, KenBurnsSpec())
        image = np.zeros((2, 2, 3), dtype=np.uint8)

        slide = slide_from_config(config, image)

        assert slide.image is image
        assert slide.duration == 2.0
        assert slide.transition_out is fade
        assert slide.ken_burns == KenBurnsSpec()
        assert slide.source == 'x.png'

    def test_timeline_entry_without_transition(self):
        entry = TimelineEntry(slide_index=0, display_start=1.0, display_end=4.0)
        assert entry.display_duration == 3.0
        assert not entry.has_transition
        assert entry.transition_duration == 0.0
        assert entry.end == 4.0

    def test_timeline_entry_with_transition(self):
        entry = TimelineEntry(0, 0.0, 3.0, TransitionSpec(TransitionKind.FADE, 1.0), 3.0, 4.0)
        assert entry.has_transition
        assert entry.transition_duration == 1.0
        assert entry.end == 4.0

    def test_timeline_length(self):
        timeline = Timeline(entries=(TimelineEntry(0, 0.0, 1.0),), total_duration=1.0)
        assert len(timeline) == 1


class TestErrorsAndOutcomes:
    """Tests for the error taxonomy and RenderOutcome"""

    def test_error_kinds(self):
        assert InvalidInputError.kind is ErrorKind.INVALID_INPUT
        assert ImageLoadError.kind is ErrorKind.IMAGE_LOAD_FAILURE
        assert RenderSurfaceUnavailableError.kind is ErrorKind.RENDER_SURFACE_UNAVAILABLE

    def test_error_base_classes(self):
        assert issubclass(InvalidInputError, ValueError)
        assert issubclass(ImageLoadError, IOError)
        assert issubclass(RenderSurfaceUnavailableError, RuntimeError)

    def test_image_load_error_carries_source(self):
        error = ImageLoadError('photos/a.png', 'file not found')
        assert error.source == 'photos/a.png'
        assert error.reason == 'file not found'
        assert 'photos/a.png' in str(error)

    def test_image_load_error_shortens_data_uris(self):
        uri = 'data:image/png;base64,' + 'A' * 5000
        error = ImageLoadError(uri, 'bad')
        assert error.source == uri
        assert len(str(error)) < 200

    def test_cancelled_error_counts_frames(self):
        assert RenderCancelledError(12).frames_rendered == 12

    def test_outcome_succeeded(self):
        outcome = RenderOutcome.succeeded(11.0, 330)
        assert outcome.success
        assert not outcome.cancelled
        assert outcome.frames_rendered == 330

    def test_outcome_failed_keeps_kind_and_message(self):
        outcome = RenderOutcome.failed(ImageLoadError('a.png', 'broken'))
        assert outcome.status is OutcomeStatus.FAILED
        assert outcome.error_kind is ErrorKind.IMAGE_LOAD_FAILURE
        assert 'a.png' in outcome.message
        assert not outcome.success

    def test_outcome_cancelled_is_not_a_failure(self):
        outcome = RenderOutcome.cancelled_after(5, 11.0, 330)
        assert outcome.cancelled
        assert outcome.error_kind is None
        assert outcome.frames_rendered == 5


class TestParseColor:

    def test_hex(self):
        assert parse_color('#ff8000') == (255, 128, 0)

    def test_named(self):
        assert parse_color('navy') == (0, 0, 128)

    def test_hex_with_alpha_drops_alpha(self):
        assert parse_color('#ff000080') == (255, 0, 0)

    def test_sequence(self):
        assert parse_color([1, 2, 3]) == (1, 2, 3)

    @pytest.mark.parametrize('value', ['not-a-colour', (1, 2), (0, 0, 256), None])
    def test_invalid(self, value):
        with pytest.raises(InvalidInputError):
            parse_color(value)


class TestValidators:

    def test_default_render_config_is_valid(self):
        assert validate_render_config(RenderConfig()) is True

    @pytest.mark.parametrize('kwargs', [
        {'width': 0},
        {'height': -1},
        {'fps': 0},
        {'max_blur_radius': -1.0},
    ])
    def test_invalid_render_config(self, kwargs):
        with pytest.raises(InvalidInputError):
            validate_render_config(RenderConfig(**kwargs))

    def test_transition_spec_validation(self):
        assert validate_transition_spec(TransitionSpec(TransitionKind.WIPE_UP, 0.5))
        with pytest.raises(InvalidInputError):
            validate_transition_spec(TransitionSpec(TransitionKind.FADE, 0.0))
        with pytest.raises(InvalidInputError):
            validate_transition_spec(TransitionSpec('sparkle', 1.0))

    def test_ken_burns_validation(self):
        assert validate_ken_burns_spec(KenBurnsSpec())
        with pytest.raises(InvalidInputError):
            validate_ken_burns_spec(KenBurnsSpec(start_scale=0.0))
        with pytest.raises(InvalidInputError):
            validate_ken_burns_spec(KenBurnsSpec(end_offset=(1.0,)))


class TestRequestParsing:
    """Tests for parse_slideshow_request and its helpers"""

    def test_minimal_request_uses_defaults(self, minimal_request):
        request = parse_slideshow_request(minimal_request)

        assert len(request.slides) == 2
        assert request.config == RenderConfig()
        assert request.output_format == 'mp4'
        assert request.quality == 'high'

    def test_slide_fields(self, minimal_request):
        first = parse_slideshow_request(minimal_request).slides[0]
        assert first.source == 'a.png'
        assert first.duration == 3.0
        assert first.transition_out == TransitionSpec(TransitionKind.FADE, 1.0, EasingKind.EASE_IN_OUT)
        assert first.ken_burns is None

    def test_output_section(self, minimal_request):
        minimal_request['output'] = {'width': 640, 'height': 360, 'fps': 24,
                                     'format': 'webm', 'quality': 'low'}
        minimal_request['backgroundColor'] = '#102030'

        request = parse_slideshow_request(minimal_request)

        assert request.config.width == 640
        assert request.config.height == 360
        assert request.config.fps == 24
        assert request.config.background_color == (16, 32, 48)
        assert request.output_format == 'webm'
        assert request.quality == 'low'

    def test_relative_sources_resolve_against_base_dir(self, minimal_request, tmp_path):
        request = parse_slideshow_request(minimal_request, base_dir=tmp_path)
        assert request.slides[0].source == str(tmp_path / 'a.png')

    def test_absolute_sources_untouched(self, tmp_path):
        absolute = str(tmp_path / 'abs.png')
        slide = parse_slide({'src': absolute, 'duration': 1}, base_dir=Path('/elsewhere'))
        assert slide.source == absolute

    def test_data_uri_source_untouched(self, tmp_path):
        uri = 'data:image/png;base64,AAAA'
        assert parse_slide({'src': uri, 'duration': 1}, base_dir=tmp_path).source == uri

    def test_non_image_data_uri_rejected(self):
        with pytest.raises(InvalidInputError, match='must be an image'):
            parse_slide({'src': 'data:text/plain;base64,AAAA', 'duration': 1})

    def test_ken_burns_defaults_and_positions(self):
        spec = parse_ken_burns({'endPosition': {'x': 40, 'y': -10}})
        assert spec == KenBurnsSpec(1.0, 1.2, (0.0, 0.0), (40.0, -10.0))

    def test_transition_easing(self):
        spec = parse_transition({'type': 'blur', 'duration': 0.5, 'easing': 'linear'})
        assert spec.kind is TransitionKind.BLUR
        assert spec.easing is EasingKind.LINEAR

    @pytest.mark.parametrize('data, message', [
        ({'slides': []}, 'At least one slide'),
        ({'slides': [{'src': 'a.png', 'duration': 1}] * 101}, 'Maximum 100'),
        ({'slides': [{'src': 'a.png', 'duration': 0}]}, r'slides\[0\]\.duration'),
        ({'slides': [{'src': 'a.png', 'duration': 61}]}, r'slides\[0\]\.duration'),
        ({'slides': [{'src': 'a.png'}]}, 'duration is required'),
        ({'slides': [{'duration': 1}]}, r'slides\[0\]\.src'),
        ({'slides': [{'src': 'a.png', 'duration': 1,
                      'transition': {'type': 'sparkle', 'duration': 1}}]}, 'transition.type'),
        ({'slides': [{'src': 'a.png', 'duration': 1,
                      'transition': {'type': 'fade', 'duration': 6}}]}, 'transition.duration'),
        ({'slides': [{'src': 'a.png', 'duration': 1, 'kenBurns': {'endScale': 4}}]}, 'endScale'),
        ({'slides': [{'src': 'a.png', 'duration': 1}], 'output': {'width': 32}}, 'output.width'),
        ({'slides': [{'src': 'a.png', 'duration': 1}], 'output': {'fps': 29.97}}, 'integer'),
        ({'slides': [{'src': 'a.png', 'duration': 1}], 'output': {'format': 'avi'}}, 'output.format'),
        ({'slides': [{'src': 'a.png', 'duration': 1}], 'output': {'quality': 'ultra'}}, 'output.quality'),
    ])
    def test_invalid_requests(self, data, message):
        with pytest.raises(InvalidInputError, match=message):
            parse_slideshow_request(data)

    def test_boolean_is_not_a_number(self):
        with pytest.raises(InvalidInputError):
            parse_slideshow_request({'slides': [{'src': 'a.png', 'duration': True}]})
