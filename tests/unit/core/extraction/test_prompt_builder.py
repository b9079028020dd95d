"""
提示词生成测试
"""

from rowpilot.core.extraction.prompt_builder import build_prompt
from rowpilot.domain.schema import init_schema


class TestBuildPrompt:
    """build_prompt"""

    def test_lists_default_fields_with_types(self, registry):
        prompt = build_prompt(registry.extraction_view())

        assert '- stkcode_code: string' in prompt
        assert '- qnty_total: number' in prompt
        assert '- price_unitrate_forex: number' in prompt
        assert '(1 if true else 0)' not in prompt

    def test_string_limits(self, registry):
        prompt = build_prompt(registry.extraction_view(), default_max_len=80)

        assert '  - remark: 500' in prompt
        assert '  - uom_trans_code: 16' in prompt
        assert '  - others: 80' in prompt

    def test_requires_raw_json(self, registry):
        prompt = build_prompt(registry.extraction_view())

        assert 'RAW JSON ONLY' in prompt
        assert prompt.rstrip().endswith('Return ONLY the JSON array.')

    def test_only_profile_fields_listed(self):
        registry = init_schema({
            'fields': {
                'code': {'dom': {'base': 'code'}},
                'qty': {'type': 'number', 'dom': {'base': 'qty'}},
                'taxed': {'type': 'boolean', 'dom': {'base': 'taxed'}, 'widget': 'checkbox'},
            },
            'transactions': {'default': ['code', 'qty', 'taxed'], 'quote': ['code']},
        })

        quote = build_prompt(registry.extraction_view(), 'quote')
        full = build_prompt(registry.extraction_view(), 'unknown_type')

        assert '- code: string' in quote
        assert 'qty' not in quote
        assert '- taxed: number (1 if true else 0)' in full
