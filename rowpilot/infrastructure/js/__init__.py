"""
宿主页面脚本

行检测、DOM 变动观测、字段写入与商品搜索弹层使用的 JS 片段，
均通过 tab.run_js(script, *args) 执行，参数以 arguments[n] 传入。
"""

from .script_store import ScriptStore

__all__ = ['ScriptStore']
