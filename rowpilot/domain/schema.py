"""
字段 Schema 注册表 - 单一事实来源

描述每个逻辑字段的语义类型、DOM 命名模板、长度约束，
以及各交易类型的字段白名单和规范填充顺序。

提取管道与填充引擎共享同一个注册表实例，但各自只拿到一个只读视图:
- ExtractionSchemaView: 字段类型 / 长度限制（用于生成提示词和规范化）
- DomSchemaView: DOM 名称 / 填充顺序（用于驱动网页）

用法:
    from rowpilot.domain.schema import init_schema, get_schema

    init_schema()                      # 启动时调用一次
    registry = get_schema()
    registry.resolve_dom_name('qnty_total', 3)   # -> 'qnty_total3'
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from rowpilot.domain.errors import ConfigurationError, SchemaUnavailableError
from rowpilot.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_PROFILE = 'default'
ROW_INDEX_PLACEHOLDER = '{i}'

FIELD_TYPES = ('string', 'number', 'boolean')
WIDGETS = ('text', 'checkbox', 'calculated', 'smartbox')
PREPARE_HOOKS = (None, 'price', 'uom')


# ============================================================
# 内置 Schema
# ============================================================

DEFAULT_SCHEMA: Dict[str, Any] = {
    'fields': {
        'stkcode_code': {
            'type': 'string', 'dom': {'base': 'stkcode_code', 'suffix': '{i}'},
            'minLen': 3, 'maxLen': 64, 'searchPopulated': True,
        },
        'description': {
            'type': 'string', 'dom': {'base': 'stkcode_desc', 'suffix': '{i}'},
            'maxLen': 120, 'searchPopulated': True,
        },
        'remark': {
            'type': 'string', 'dom': {'base': 'desc', 'suffix': '{i}'},
            'maxLen': 500, 'searchPopulated': True,
        },
        'qnty_total': {
            'type': 'number', 'dom': {'base': 'qnty_total', 'suffix': '{i}'},
        },
        'uom_trans_code': {
            'type': 'string', 'dom': {'base': 'uom_trans_code', 'suffix': '{i}_disp'},
            'maxLen': 16, 'prepare': 'uom',
        },
        'price_unitrate_forex': {
            'type': 'number', 'dom': {'base': 'fmi_aup', 'suffix': '{i}_disp'},
            'prepare': 'price',
        },
    },
    'transactions': {
        # 其他交易类型自动回退到 default
        'default': [
            'stkcode_code', 'description', 'remark',
            'uom_trans_code', 'qnty_total', 'price_unitrate_forex',
        ],
    },
    'fillOrder': [
        'stkcode_code', 'description', 'remark',
        'uom_trans_code', 'qnty_total', 'price_unitrate_forex',
    ],
    'stockCodeField': 'stkcode_code',
}


# ============================================================
# 数据类
# ============================================================

@dataclass(frozen=True)
class FieldSpec:
    """
    字段定义

    Attributes:
        id: 字段唯一标识
        type: 语义类型 string / number / boolean
        dom_base: DOM name 基础部分
        dom_suffix: 后缀模板，{i} 会被替换为行号
        min_len / max_len: 字符串长度约束（可选）
        widget: 写入方式 text / checkbox / calculated / smartbox
        prepare: 写入前需要执行的宿主准备钩子 price / uom
        pad_width: 日期分量等需要补零的固定宽度
        search_populated: 商品搜索建行时由宿主自动带出，不再覆盖
    """
    id: str
    type: str
    dom_base: str
    dom_suffix: str = ROW_INDEX_PLACEHOLDER
    min_len: Optional[int] = None
    max_len: Optional[int] = None
    widget: str = 'text'
    prepare: Optional[str] = None
    pad_width: Optional[int] = None
    search_populated: bool = False

    def dom_name(self, row_index: int) -> str:
        """生成指定行的 DOM name"""
        return f"{self.dom_base}{self.dom_suffix.replace(ROW_INDEX_PLACEHOLDER, str(row_index))}"


@dataclass(frozen=True)
class TransactionProfile:
    """交易类型白名单（有序）"""
    name: str
    field_ids: Tuple[str, ...]


@dataclass(frozen=True)
class SchemaRegistry:
    """
    不可变的字段注册表

    构建后不可修改，进程内共享同一实例。
    """
    fields: Mapping[str, FieldSpec]
    profiles: Mapping[str, TransactionProfile]
    canonical_order: Tuple[str, ...]
    stock_code_field: Optional[str] = None

    def has_profile(self, transaction_type: Optional[str]) -> bool:
        """交易类型是否显式定义"""
        return bool(transaction_type) and transaction_type in self.profiles

    def profile(self, transaction_type: Optional[str] = None) -> TransactionProfile:
        """获取交易白名单，未识别的类型回退到 default"""
        if self.has_profile(transaction_type):
            return self.profiles[transaction_type]
        if transaction_type and transaction_type != DEFAULT_PROFILE:
            logger.debug(f"交易类型 '{transaction_type}' 未定义，回退到 default")
        return self.profiles[DEFAULT_PROFILE]

    def get_field(self, field_id: str) -> FieldSpec:
        spec = self.fields.get(field_id)
        if spec is None:
            raise ConfigurationError(f"字段 '{field_id}' 未在 Schema 中注册")
        return spec

    def resolve_fields(self, transaction_type: Optional[str] = None) -> List[FieldSpec]:
        """
        获取交易类型的有效字段（按白名单顺序）

        Args:
            transaction_type: 交易类型，None 或未识别时使用 default

        Returns:
            FieldSpec 列表，始终非空
        """
        return [self.fields[fid] for fid in self.profile(transaction_type).field_ids]

    def fill_order(self, transaction_type: Optional[str] = None) -> List[str]:
        """规范填充顺序，过滤到交易白名单内"""
        allowed = set(self.profile(transaction_type).field_ids)
        return [fid for fid in self.canonical_order if fid in allowed]

    def resolve_dom_name(self, field_id: str, row_index: int) -> str:
        """
        解析字段在指定行的 DOM name

        Raises:
            ConfigurationError: 字段未注册
        """
        return self.get_field(field_id).dom_name(row_index)

    def extraction_view(self) -> 'ExtractionSchemaView':
        return ExtractionSchemaView(self)

    def dom_view(self) -> 'DomSchemaView':
        return DomSchemaView(self)


# ============================================================
# 只读视图
# ============================================================

class ExtractionSchemaView:
    """提取管道使用的只读视图: 字段类型与长度限制"""

    def __init__(self, registry: SchemaRegistry):
        self._registry = registry

    def fields(self, transaction_type: Optional[str] = None) -> List[FieldSpec]:
        return self._registry.resolve_fields(transaction_type)

    def fields_by_type(self, transaction_type: Optional[str] = None) -> Dict[str, List[FieldSpec]]:
        """按语义类型分组，组内保持注册顺序"""
        grouped: Dict[str, List[FieldSpec]] = {t: [] for t in FIELD_TYPES}
        allowed = set(self._registry.profile(transaction_type).field_ids)
        for spec in self._registry.fields.values():
            if spec.id in allowed:
                grouped[spec.type].append(spec)
        return grouped

    def max_lengths(self, transaction_type: Optional[str] = None) -> Dict[str, int]:
        """字符串字段的单独长度上限"""
        return {
            spec.id: spec.max_len
            for spec in self.fields_by_type(transaction_type)['string']
            if spec.max_len and spec.max_len > 0
        }


class DomSchemaView:
    """填充引擎使用的只读视图: DOM 名称与填充顺序"""

    def __init__(self, registry: SchemaRegistry):
        self._registry = registry

    @property
    def stock_code_field(self) -> Optional[str]:
        return self._registry.stock_code_field

    def fill_order(self, transaction_type: Optional[str] = None) -> List[str]:
        return self._registry.fill_order(transaction_type)

    def field(self, field_id: str) -> FieldSpec:
        return self._registry.get_field(field_id)

    def resolve_dom_name(self, field_id: str, row_index: int) -> str:
        return self._registry.resolve_dom_name(field_id, row_index)


# ============================================================
# 构建与校验
# ============================================================

def build_registry(raw: Mapping[str, Any]) -> SchemaRegistry:
    """
    由原始字典构建注册表

    字典格式与 DEFAULT_SCHEMA 一致（fields / transactions / fillOrder / stockCodeField）。

    Raises:
        ConfigurationError: 结构不合法
    """
    raw_fields = raw.get('fields') if isinstance(raw, Mapping) else None
    if not isinstance(raw_fields, Mapping) or not raw_fields:
        raise ConfigurationError("Schema 缺少 fields 定义")

    fields: Dict[str, FieldSpec] = {}
    for field_id, definition in raw_fields.items():
        definition = definition or {}
        dom = definition.get('dom') or {}
        if not dom.get('base'):
            raise ConfigurationError(f"字段 '{field_id}' 缺少 dom.base")
        field_type = definition.get('type', 'string')
        if field_type not in FIELD_TYPES:
            raise ConfigurationError(f"字段 '{field_id}' 类型不合法: {field_type}")
        widget = definition.get('widget', 'text')
        if widget not in WIDGETS:
            raise ConfigurationError(f"字段 '{field_id}' widget 不合法: {widget}")
        prepare = definition.get('prepare')
        if prepare not in PREPARE_HOOKS:
            raise ConfigurationError(f"字段 '{field_id}' prepare 不合法: {prepare}")
        fields[field_id] = FieldSpec(
            id=field_id,
            type=field_type,
            dom_base=dom['base'],
            dom_suffix=dom.get('suffix', ROW_INDEX_PLACEHOLDER),
            min_len=definition.get('minLen'),
            max_len=definition.get('maxLen'),
            widget=widget,
            prepare=prepare,
            pad_width=definition.get('padWidth'),
            search_populated=bool(definition.get('searchPopulated', False)),
        )

    raw_profiles = raw.get('transactions') or {}
    profiles: Dict[str, TransactionProfile] = {}
    for name, field_ids in raw_profiles.items():
        unknown = [fid for fid in field_ids if fid not in fields]
        if unknown:
            raise ConfigurationError(f"交易类型 '{name}' 引用了未注册字段: {unknown}")
        profiles[name] = TransactionProfile(name=name, field_ids=tuple(dict.fromkeys(field_ids)))
    if DEFAULT_PROFILE not in profiles:
        # 缺省时 default 覆盖全部字段
        profiles[DEFAULT_PROFILE] = TransactionProfile(DEFAULT_PROFILE, tuple(fields))
    if not profiles[DEFAULT_PROFILE].field_ids:
        raise ConfigurationError("default 交易类型不能为空")

    order = list(raw.get('fillOrder') or [])
    unknown = [fid for fid in order if fid not in fields]
    if unknown:
        raise ConfigurationError(f"fillOrder 引用了未注册字段: {unknown}")
    # 未出现在 fillOrder 中的字段按注册顺序追加
    order.extend(fid for fid in fields if fid not in order)

    stock_field = raw.get('stockCodeField')
    if stock_field is not None and stock_field not in fields:
        raise ConfigurationError(f"stockCodeField 未注册: {stock_field}")

    return SchemaRegistry(
        fields=MappingProxyType(fields),
        profiles=MappingProxyType(profiles),
        canonical_order=tuple(dict.fromkeys(order)),
        stock_code_field=stock_field,
    )


# ============================================================
# 进程级单例
# ============================================================

_registry: Optional[SchemaRegistry] = None


def init_schema(source: Union[None, str, Path, Mapping[str, Any]] = None) -> SchemaRegistry:
    """
    初始化进程级 Schema（启动时调用一次）

    Args:
        source: None 使用内置 Schema；str/Path 为 JSON 文件；也可直接传字典

    Raises:
        SchemaUnavailableError: 加载或校验失败
    """
    global _registry

    try:
        if source is None:
            raw = DEFAULT_SCHEMA
        elif isinstance(source, Mapping):
            raw = source
        else:
            raw = json.loads(Path(source).read_text(encoding='utf-8'))
        _registry = build_registry(raw)
    except (OSError, ValueError, ConfigurationError) as e:
        _registry = None
        raise SchemaUnavailableError(f"Schema 加载失败: {e}") from e

    logger.info(f"📋 Schema 已加载: {len(_registry.fields)} 个字段, {len(_registry.profiles)} 个交易类型")
    return _registry


def get_schema() -> SchemaRegistry:
    """
    获取进程级 Schema

    Raises:
        SchemaUnavailableError: 尚未初始化
    """
    if _registry is None:
        raise SchemaUnavailableError("Schema 未初始化: 请先调用 init_schema()")
    return _registry


def reset_schema():
    """清除进程级 Schema（仅测试使用）"""
    global _registry
    _registry = None
