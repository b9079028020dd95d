"""
字段 Schema 注册表测试
"""

import json

import pytest

from rowpilot.domain.errors import ConfigurationError, SchemaUnavailableError
from rowpilot.domain.schema import (
    DEFAULT_SCHEMA, FieldSpec, build_registry, get_schema, init_schema, reset_schema
)


class TestFieldSpec:
    """FieldSpec DOM 命名"""

    def test_dom_name_plain_suffix(self):
        spec = FieldSpec(id='qnty_total', type='number', dom_base='qnty_total')

        assert spec.dom_name(3) == 'qnty_total3'

    def test_dom_name_with_disp_suffix(self):
        spec = FieldSpec(id='price', type='number', dom_base='fmi_aup', dom_suffix='{i}_disp')

        assert spec.dom_name(12) == 'fmi_aup12_disp'


class TestDefaultSchema:
    """内置 Schema"""

    def test_default_profile_fields(self, registry):
        """default 白名单包含六个字段"""
        ids = [spec.id for spec in registry.resolve_fields()]

        assert ids == DEFAULT_SCHEMA['transactions']['default']
        assert len(ids) == 6

    def test_fill_order_puts_uom_before_quantity(self, registry):
        """规范顺序: 单位先于数量和单价"""
        order = registry.fill_order()

        assert order.index('uom_trans_code') < order.index('qnty_total')
        assert order.index('qnty_total') < order.index('price_unitrate_forex')

    def test_resolve_dom_name(self, registry):
        assert registry.resolve_dom_name('qnty_total', 3) == 'qnty_total3'
        assert registry.resolve_dom_name('price_unitrate_forex', 3) == 'fmi_aup3_disp'
        assert registry.resolve_dom_name('remark', 1) == 'desc1'

    def test_unknown_field_raises(self, registry):
        """未注册字段是配置错误"""
        with pytest.raises(ConfigurationError):
            registry.resolve_dom_name('no_such_field', 1)

    def test_unknown_transaction_falls_back_to_default(self, registry):
        """未识别的交易类型回退到 default"""
        assert not registry.has_profile('purchase_order')
        assert registry.resolve_fields('purchase_order') == registry.resolve_fields('default')
        assert registry.resolve_fields(None) == registry.resolve_fields('default')

    def test_registry_is_immutable(self, registry):
        with pytest.raises(TypeError):
            registry.fields['x'] = None


class TestViews:
    """只读视图"""

    def test_extraction_view_groups_by_type(self, registry):
        grouped = registry.extraction_view().fields_by_type()

        assert [s.id for s in grouped['number']] == ['qnty_total', 'price_unitrate_forex']
        assert grouped['boolean'] == []

    def test_extraction_view_max_lengths(self, registry):
        limits = registry.extraction_view().max_lengths()

        assert limits['stkcode_code'] == 64
        assert limits['remark'] == 500
        assert 'qnty_total' not in limits

    def test_dom_view_exposes_stock_code_field(self, registry):
        view = registry.dom_view()

        assert view.stock_code_field == 'stkcode_code'
        assert view.fill_order() == registry.fill_order()
        assert view.field('remark').search_populated is True


class TestTransactionProfiles:
    """交易类型白名单"""

    def test_fill_order_filtered_to_profile(self):
        registry = build_registry({
            'fields': {
                'a': {'dom': {'base': 'a'}},
                'b': {'type': 'number', 'dom': {'base': 'b'}},
                'c': {'dom': {'base': 'c'}},
            },
            'transactions': {'default': ['a', 'b', 'c'], 'short': ['c', 'a']},
            'fillOrder': ['b', 'c', 'a'],
        })

        assert registry.fill_order('short') == ['c', 'a']
        assert registry.fill_order() == ['b', 'c', 'a']

    def test_missing_default_profile_covers_all_fields(self):
        registry = build_registry({'fields': {'a': {'dom': {'base': 'a'}}, 'b': {'dom': {'base': 'b'}}}})

        assert [s.id for s in registry.resolve_fields()] == ['a', 'b']

    def test_fields_missing_from_fill_order_are_appended(self):
        registry = build_registry({
            'fields': {'a': {'dom': {'base': 'a'}}, 'b': {'dom': {'base': 'b'}}},
            'fillOrder': ['b'],
        })

        assert registry.fill_order() == ['b', 'a']


class TestValidation:
    """构建校验"""

    @pytest.mark.parametrize('raw', [
        {},
        {'fields': {}},
        {'fields': {'a': {'dom': {}}}},
        {'fields': {'a': {'type': 'date', 'dom': {'base': 'a'}}}},
        {'fields': {'a': {'widget': 'slider', 'dom': {'base': 'a'}}}},
        {'fields': {'a': {'dom': {'base': 'a'}}}, 'transactions': {'default': ['a', 'zz']}},
        {'fields': {'a': {'dom': {'base': 'a'}}}, 'fillOrder': ['zz']},
        {'fields': {'a': {'dom': {'base': 'a'}}}, 'stockCodeField': 'zz'},
    ])
    def test_invalid_schema_raises(self, raw):
        with pytest.raises(ConfigurationError):
            build_registry(raw)


class TestProcessSingleton:
    """进程级单例"""

    def test_get_before_init_raises(self):
        reset_schema()

        with pytest.raises(SchemaUnavailableError):
            get_schema()

    def test_init_then_get_returns_same_instance(self):
        registry = init_schema()

        assert get_schema() is registry

    def test_init_from_json_file(self, tmp_path):
        path = tmp_path / 'schema.json'
        path.write_text(json.dumps(DEFAULT_SCHEMA), encoding='utf-8')

        registry = init_schema(str(path))

        assert registry.fill_order() == DEFAULT_SCHEMA['fillOrder']

    def test_init_missing_file_is_unavailable(self, tmp_path):
        with pytest.raises(SchemaUnavailableError):
            init_schema(tmp_path / 'missing.json')

        with pytest.raises(SchemaUnavailableError):
            get_schema()

    def test_init_invalid_json_is_unavailable(self, tmp_path):
        path = tmp_path / 'broken.json'
        path.write_text('{not json', encoding='utf-8')

        with pytest.raises(SchemaUnavailableError):
            init_schema(path)
