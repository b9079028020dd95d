"""
规范化与清洗测试
"""

import math

import pytest

from rowpilot.core.extraction.normalizer import (
    clean_and_clamp, coerce_boolean, format_scalar, is_noise_string,
    normalize_items, normalize_number, normalize_string, sanitize_items
)
from rowpilot.domain.schema import init_schema


class TestNormalizeNumber:
    """数值规范化"""

    @pytest.mark.parametrize('raw,expected', [
        ('$1,234.50', 1234.5),
        ('12 pcs', 12.0),
        ('-3.5kg', -3.5),
        ('€99', 99.0),
        ('.5', 0.5),
    ])
    def test_parses_decorated_numbers(self, raw, expected):
        assert normalize_number(raw) == expected

    def test_numbers_pass_through(self):
        assert normalize_number(42) == 42
        assert normalize_number(2.5) == 2.5

    @pytest.mark.parametrize('raw', ['abc', '', None, True, float('nan'), math.inf])
    def test_unparseable_is_none(self, raw):
        """无法解析为 None，而不是 0"""
        assert normalize_number(raw) is None


class TestCoerceBoolean:
    """布尔规范化"""

    @pytest.mark.parametrize('raw', ['yes', 'Y', 'true', 'GST', 'incl', '1', '2', 3, True])
    def test_truthy(self, raw):
        assert coerce_boolean(raw) is True

    @pytest.mark.parametrize('raw', ['no', '0', '', 'n/a', 0, -1, None, False])
    def test_falsy(self, raw):
        assert coerce_boolean(raw) is False


class TestStrings:
    """字符串规范化"""

    def test_collapses_whitespace(self):
        assert normalize_string('  Widget \n  blue ') == 'Widget blue'

    def test_pad_width(self):
        assert normalize_string('7', pad_width=2) == '07'
        assert normalize_string('', pad_width=2) == ''

    def test_none_is_empty(self):
        assert normalize_string(None) == ''

    def test_format_scalar(self):
        assert format_scalar(12.0) == '12'
        assert format_scalar(12.5) == '12.5'
        assert format_scalar(True) == 'true'
        assert format_scalar(None) == ''


class TestNoise:
    """噪声检测与截断"""

    def test_long_run_is_noise(self):
        assert is_noise_string('z' * 12)
        assert clean_and_clamp('z' * 12) == ''

    def test_dominant_character_is_noise(self):
        """20 个字符中 85% 为同一字符"""
        text = 'xxxxxxxxaxxxxxxxbxxc'
        assert len(text) == 20

        assert clean_and_clamp(text) == ''

    def test_varied_string_unchanged(self):
        text = 'ABC-123 steel x'

        assert not is_noise_string(text)
        assert clean_and_clamp(text) == text

    def test_repeats_collapsed_to_three(self):
        assert clean_and_clamp('Heeeeeello') == 'Heeello'

    def test_default_length_cap(self):
        assert len(clean_and_clamp('abcdefghij' * 20)) == 120

    def test_explicit_length_cap(self):
        assert clean_and_clamp('abcdefgh', max_len=5) == 'abcde'

    def test_zero_width_removed(self):
        assert clean_and_clamp('A\u200bB') == 'AB'


class TestBatch:
    """批量规范化与清洗"""

    def test_normalize_items_fills_missing_fields(self, registry):
        view = registry.extraction_view()

        records = normalize_items([{'stkcode_code': ' A-100 ', 'qnty_total': '2', 'extra': 'x'}], view)

        assert records == [{
            'stkcode_code': 'A-100',
            'description': '',
            'remark': '',
            'uom_trans_code': '',
            'qnty_total': 2.0,
            'price_unitrate_forex': None,
        }]

    def test_normalize_items_boolean_field(self):
        view = init_schema({
            'fields': {'gst': {'type': 'boolean', 'dom': {'base': 'gst'}, 'widget': 'checkbox'}},
        }).extraction_view()

        assert normalize_items([{'gst': 'Y'}, {}], view) == [{'gst': True}, {'gst': False}]

    def test_sanitize_items_applies_per_field_limits(self, registry):
        view = registry.extraction_view()
        records = normalize_items([{
            'stkcode_code': 'S' + 'abcdefgh' * 10,
            'description': 'word ' * 60,
            'remark': '-' * 15,
            'qnty_total': 1,
        }], view)

        sanitized = sanitize_items(records, view)[0]

        assert len(sanitized['stkcode_code']) == 64
        assert len(sanitized['description']) == 120
        assert sanitized['remark'] == ''
        assert sanitized['qnty_total'] == 1

    def test_sanitize_items_default_limit(self):
        """未声明 maxLen 的字段使用传入的默认上限"""
        view = init_schema({
            'fields': {
                'note': {'type': 'string', 'dom': {'base': 'note'}},
                'code': {'type': 'string', 'dom': {'base': 'code'}, 'maxLen': 8},
            },
        }).extraction_view()
        records = normalize_items([{'note': 'abcdefghij' * 10, 'code': 'abcdefghij'}], view)

        sanitized = sanitize_items(records, view, default_max_len=30)[0]

        assert sanitized['note'] == 'abcdefghij' * 3
        assert sanitized['code'] == 'abcdefgh'
