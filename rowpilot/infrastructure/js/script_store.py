"""
JavaScript 脚本存储模块 - 基础设施层实现

将所有在宿主页面中执行的 JavaScript 集中管理，方便维护和复用。
所有脚本通过 DrissionPage 的 tab.run_js(script, *args) 执行，
参数以 arguments[n] 传入，避免字符串拼接转义。

模块结构:
- 行检测: ROW_INDEX / ROW_READY / CLICK_ADD_ROW
- DOM 变动观测: WATCH_INSTALL / WATCH_STATE / WATCH_UNINSTALL
- 字段写入: DESCRIBE_FIELD / COMMIT_VALUE / TOUCH_FIELD / TOGGLE_FIELD / TYPE_*
- 宿主准备钩子: PREPARE_PRICE / PREPARE_UOM / AFTER_ROW_FILLED
- 商品搜索: SEARCH_OPEN / SEARCH_INPUT_READY / SEARCH_SUBMIT / SEARCH_BLUR / SEARCH_POLL / SEARCH_CLOSE
"""

from typing import Final


# 所有字段脚本共用的事件辅助函数
_FIELD_HELPERS: Final[str] = """
    const byName = (name) => document.getElementsByName(name)[0] || null;
    const isVisible = (el) => {
        if (!el) return false;
        const cs = getComputedStyle(el);
        return cs.display !== 'none' && cs.visibility !== 'hidden' && el.offsetParent !== null;
    };
    const fireFocus = (el) => {
        el.focus();
        el.dispatchEvent(new FocusEvent('focusin', { bubbles: true }));
        el.dispatchEvent(new FocusEvent('focus', { bubbles: true }));
    };
    const fireBlur = (el) => {
        el.blur();
        el.dispatchEvent(new FocusEvent('focusout', { bubbles: true }));
        el.dispatchEvent(new FocusEvent('blur', { bubbles: true }));
    };
    const unlock = (el) => {
        try { el.readOnly = false; el.disabled = false; } catch (e) {}
    };
"""

# 选择器命中元素后用完整鼠标事件链点击
_CLICK_HELPERS: Final[str] = """
    const robustClick = (el) => {
        const w = (el.ownerDocument && el.ownerDocument.defaultView) || window;
        ['mouseover', 'mousedown', 'mouseup', 'click'].forEach(type =>
            el.dispatchEvent(new w.MouseEvent(type, { bubbles: true, cancelable: true, view: w }))
        );
    };
    const collectDocs = (win, acc) => {
        try { if (win.document) acc.add(win.document); } catch (e) {}
        const n = (win.frames && win.frames.length) || 0;
        for (let i = 0; i < n; i++) {
            try {
                const f = win.frames[i];
                if (f && f.document && !acc.has(f.document)) collectDocs(f, acc);
            } catch (e) {}
        }
        return acc;
    };
"""


class ScriptStore:
    """
    JavaScript 脚本存储

    集中管理所有宿主页面脚本，提供类型安全的访问方式。
    """

    # ============================================================
    # 行检测
    # ============================================================

    # arguments: counterName, rowPrefix
    ROW_INDEX: Final[str] = """
        const counter = document.getElementsByName(arguments[0])[0];
        if (counter && counter.value !== '' && !isNaN(counter.value)) {
            return parseInt(counter.value, 10);
        }
        const prefix = arguments[1];
        const numbers = Array.from(document.querySelectorAll('tr[id^="' + prefix + '"]'))
            .filter(row => row.offsetParent !== null)
            .map(row => parseInt(row.id.slice(prefix.length), 10))
            .filter(n => !isNaN(n));
        return numbers.length ? Math.max.apply(null, numbers) : null;
    """

    # arguments: counterName, rowPrefix, rowIndex
    ROW_READY: Final[str] = """
        const counter = document.getElementsByName(arguments[0])[0];
        const rowIndex = arguments[2];
        if (counter && counter.value !== '' && !isNaN(counter.value)
                && parseInt(counter.value, 10) >= rowIndex) {
            return true;
        }
        const row = document.getElementById(arguments[1] + rowIndex);
        return !!row && row.offsetParent !== null;
    """

    # arguments: addRowSelector
    CLICK_ADD_ROW: Final[str] = """
        const btn = document.querySelector(arguments[0]);
        if (!btn) return false;
        btn.click();
        return true;
    """

    # ============================================================
    # DOM 变动观测
    # ============================================================

    # arguments: containerSelector, counterName
    WATCH_INSTALL: Final[str] = """
        const state = window.__rowpilot || (window.__rowpilot = {});
        if (state.observers) state.observers.forEach(o => { try { o.disconnect(); } catch (e) {} });
        state.last = Date.now();
        state.observers = [];
        const bump = () => { state.last = Date.now(); };
        const container = document.querySelector(arguments[0]) || document.body;
        const rowObserver = new MutationObserver(bump);
        rowObserver.observe(container, { childList: true, subtree: true, attributes: true, characterData: true });
        state.observers.push(rowObserver);
        const counter = document.getElementsByName(arguments[1])[0];
        if (counter) {
            const counterObserver = new MutationObserver(bump);
            counterObserver.observe(counter, { attributes: true, attributeFilter: ['value'] });
            state.observers.push(counterObserver);
        }
        return true;
    """

    WATCH_STATE: Final[str] = """
        const state = window.__rowpilot;
        if (!state || !state.observers) return null;
        return { idle: Date.now() - state.last };
    """

    WATCH_UNINSTALL: Final[str] = """
        const state = window.__rowpilot;
        if (state && state.observers) {
            state.observers.forEach(o => { try { o.disconnect(); } catch (e) {} });
            state.observers = null;
        }
        return true;
    """

    # ============================================================
    # 字段写入
    # ============================================================

    # arguments: name
    DESCRIBE_FIELD: Final[str] = _FIELD_HELPERS + """
        const el = byName(arguments[0]);
        if (!el) return { exists: false };
        return {
            exists: true,
            visible: isVisible(el),
            readonly: !!(el.readOnly || el.hasAttribute('readonly')),
            type: (el.type || 'text').toLowerCase(),
            checked: (el.type === 'checkbox' || el.type === 'radio') ? !!el.checked : null
        };
    """

    # arguments: name, value, suppressInline
    COMMIT_VALUE: Final[str] = _FIELD_HELPERS + """
        const el = byName(arguments[0]);
        if (!el) return false;
        const value = arguments[1];
        const setValue = () => {
            unlock(el);
            const type = (el.type || '').toLowerCase();
            if (type === 'checkbox' || type === 'radio') {
                const desired = !!value && value !== 'false' && value !== '0';
                if (el.checked !== desired) {
                    el.checked = desired;
                    el.dispatchEvent(new Event('input', { bubbles: true }));
                }
                el.dispatchEvent(new Event('change', { bubbles: true }));
                return;
            }
            el.value = String(value == null ? '' : value);
            if (el.setAttribute) el.setAttribute('value', el.value);
            el.dispatchEvent(new Event('input', { bubbles: true }));
            el.dispatchEvent(new Event('change', { bubbles: true }));
        };
        if (arguments[2]) {
            // smartbox: 写值期间屏蔽内联事件，写完再补 focus/blur
            const saved = {};
            ['onfocus', 'onblur', 'onkeyup', 'onchange'].forEach(attr => {
                saved[attr] = el.getAttribute(attr);
                if (saved[attr] != null) el.setAttribute(attr, '');
            });
            try {
                setValue();
            } finally {
                Object.keys(saved).forEach(attr => {
                    if (saved[attr] == null) el.removeAttribute(attr);
                    else el.setAttribute(attr, saved[attr]);
                });
            }
            fireFocus(el);
            fireBlur(el);
            return true;
        }
        fireFocus(el);
        setValue();
        fireBlur(el);
        return true;
    """

    # arguments: name
    TOUCH_FIELD: Final[str] = _FIELD_HELPERS + """
        const el = byName(arguments[0]);
        if (!el) return false;
        fireFocus(el);
        fireBlur(el);
        return true;
    """

    # arguments: name
    TOGGLE_FIELD: Final[str] = _FIELD_HELPERS + """
        const el = byName(arguments[0]);
        if (!el) return false;
        fireFocus(el);
        el.click();
        fireBlur(el);
        return true;
    """

    # 逐字符输入: 开始 -> 每个字符 -> 结束
    # arguments: name
    TYPE_BEGIN: Final[str] = _FIELD_HELPERS + """
        const el = byName(arguments[0]);
        if (!el) return false;
        unlock(el);
        fireFocus(el);
        try { el.select && el.select(); } catch (e) {}
        el.value = '';
        if (el.setAttribute) el.setAttribute('value', '');
        el.dispatchEvent(new Event('input', { bubbles: true }));
        return true;
    """

    # arguments: name, character
    TYPE_CHAR: Final[str] = """
        const el = document.getElementsByName(arguments[0])[0];
        if (!el) return false;
        const ch = arguments[1];
        const keyCode = ch === '.' ? 190 : ch === '-' ? 189 : ch.toUpperCase().charCodeAt(0);
        const fireKey = (type) => {
            const evt = new KeyboardEvent(type, { bubbles: true, cancelable: true, key: ch });
            try { Object.defineProperty(evt, 'keyCode', { value: keyCode }); } catch (e) {}
            try { Object.defineProperty(evt, 'which', { value: keyCode }); } catch (e) {}
            el.dispatchEvent(evt);
        };
        fireKey('keydown');
        fireKey('keypress');
        el.value += ch;
        if (el.setAttribute) el.setAttribute('value', el.value);
        el.dispatchEvent(new Event('input', { bubbles: true }));
        fireKey('keyup');
        return true;
    """

    # arguments: name
    TYPE_END: Final[str] = _FIELD_HELPERS + """
        const el = byName(arguments[0]);
        if (!el) return false;
        el.dispatchEvent(new Event('change', { bubbles: true }));
        fireBlur(el);
        return true;
    """

    # ============================================================
    # 宿主准备钩子
    # ============================================================

    # 隐藏的下拉列表，宿主的价格/单位联动逻辑依赖它存在
    # arguments: listName, anchorName
    _ENSURE_LIST: Final[str] = """
        const ensureList = (listName, anchorName) => {
            if (document.getElementsByName(listName)[0]) return;
            const select = document.createElement('select');
            select.name = listName;
            select.size = 7;
            select.style.position = 'absolute';
            select.style.visibility = 'hidden';
            const anchor = document.getElementsByName(anchorName)[0];
            ((anchor && anchor.form) || document.forms[0] || document.body).appendChild(select);
        };
    """

    # arguments: rowIndex
    PREPARE_PRICE: Final[str] = _ENSURE_LIST + """
        const i = arguments[0];
        const flag = document.getElementsByName('fmi_unit_price_editable' + i)[0];
        if (flag) flag.value = 'y';
        try {
            if (typeof window.UnitPriceEditable === 'function') {
                window.UnitPriceEditable(i);
            } else {
                const field = document.getElementsByName('fmi_aup' + i + '_disp')[0];
                if (field) field.click();
            }
        } catch (e) {}
        ensureList('fmi_aup' + i + '_list', 'fmi_aup' + i + '_disp');
        return true;
    """

    # arguments: rowIndex
    PREPARE_UOM: Final[str] = _ENSURE_LIST + """
        const i = arguments[0];
        ensureList('uom_trans_code' + i + '_list', 'uom_trans_code' + i + '_disp');
        return true;
    """

    AFTER_ROW_FILLED: Final[str] = """
        try {
            if (typeof window.fixNumberDecimal === 'function') {
                window.fixNumberDecimal('number', 'all');
                window.fixNumberDecimal('text', 'all');
                return true;
            }
        } catch (e) {}
        return false;
    """

    # ============================================================
    # 商品搜索
    # ============================================================

    # 点击行内商品编码框，宿主据此打开搜索弹层
    # arguments: rowInputName
    SEARCH_OPEN: Final[str] = """
        const rowInput = document.getElementsByName(arguments[0])[0];
        if (rowInput && typeof rowInput.click === 'function') {
            rowInput.click();
            return true;
        }
        return false;
    """

    # arguments: inputSelector
    SEARCH_INPUT_READY: Final[str] = """
        return !!document.querySelector(arguments[0]);
    """

    # arguments: inputSelector, key
    SEARCH_SUBMIT: Final[str] = """
        const input = document.querySelector(arguments[0]);
        if (!input) return false;
        input.value = arguments[1];
        input.focus();
        if (typeof input.onkeypress === 'function') {
            input.onkeypress.call(input, { keyCode: 13, which: 13, charCode: 13, key: 'Enter' });
        } else {
            const evt = new KeyboardEvent('keypress', { bubbles: true, cancelable: true, key: 'Enter' });
            try { Object.defineProperty(evt, 'keyCode', { get: () => 13 }); } catch (e) {}
            try { Object.defineProperty(evt, 'which', { get: () => 13 }); } catch (e) {}
            input.dispatchEvent(evt);
        }
        return true;
    """

    # arguments: inputSelector
    SEARCH_BLUR: Final[str] = """
        const input = document.querySelector(arguments[0]);
        if (input) input.blur();
        return true;
    """

    # 单次轮询: 找到最佳结果则选中，或报告明确的空结果
    # arguments: key, itemSelector, emptySelector
    # 返回: {status: 'selected', text, ok} / {status: 'empty'} / {status: 'pending'}
    SEARCH_POLL: Final[str] = _CLICK_HELPERS + """
        const key = arguments[0];
        const docs = Array.from(collectDocs(window, new Set()));
        const visible = (el) => !!el && el.offsetParent !== null;
        const compact = (el) => (el.textContent || '').replace(/\\s+/g, '');
        let link = null;
        for (const d of docs) {
            const all = Array.from(d.querySelectorAll(arguments[1]));
            if (!all.length) continue;
            const vis = all.filter(visible);
            link = vis.find(a => compact(a).startsWith(key))
                || all.find(a => compact(a).startsWith(key))
                || vis[0] || all[0];
            break;
        }
        if (link) {
            robustClick(link);
            let ok = false;
            const w = (link.ownerDocument && link.ownerDocument.defaultView) || window;
            const onclick = link.getAttribute('onclick') || '';
            if (onclick) {
                try { w.eval(onclick); ok = true; } catch (e) { ok = false; }
            }
            return { status: 'selected', text: (link.textContent || '').trim(), ok: ok };
        }
        for (const d of docs) {
            try {
                const table = d.querySelector(arguments[2]);
                if (table && /no record found/i.test(table.textContent || '')) return { status: 'empty' };
            } catch (e) {}
        }
        return { status: 'pending' };
    """

    # arguments: overlaySelector
    SEARCH_CLOSE: Final[str] = _CLICK_HELPERS + """
        const overlay = arguments[0];
        const icon = document.querySelector(overlay + ' i.fa-window-close')
            || document.querySelector('#showrectable i.fa-window-close')
            || document.querySelector('#showrectablesor i.fa-window-close');
        const clickable = icon && icon.closest('[onclick]');
        if (clickable) robustClick(clickable);
        else if (icon) robustClick(icon);
        if (typeof window.hideRecordEvent === 'function') window.hideRecordEvent();
        if (typeof window.resetSort === 'function') window.resetSort();
        return true;
    """
