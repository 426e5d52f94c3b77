# ======================================================================================================================
# 📁 file        : mu_binder.py — Разбор @{identifier}-разметки контрола и двусторонние привязки свойств
# 🕒 created     : 04.10.2026 14:30
# 🎉 contains    : BINDING_MAP, IGNORE_MAP, TBindingRule, TElementId, TElementBinding, TParseResult, TTemplateBinder
# 🌅 project     : Modular UI 2026 🜂
# ======================================================================================================================
# 🚢 ...imports...
from __future__ import annotations
import html as html_lib
import re
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from mu_sys import *
from mu_props import kind_of
# 💎🧩⚙️ ... __ALL__ ...
__all__ = ["TBindingRule", "BINDING_MAP", "IGNORE_MAP", "binding_rule",
           "TElementId", "TElementBinding", "TParseResult", "TTemplateBinder",
           "render_value", "new_uid"]
# ----------------------------------------------------------------------------------------------------------------------
# 🧩 TBindingRule — строка таблицы привязок
# ----------------------------------------------------------------------------------------------------------------------
@dataclass(frozen=True)
class TBindingRule:
    event: Optional[str] = None     # событие хоста, по которому значение читается обратно в свойство
    internal: bool = False          # только live-свойство элемента, в разметку не попадает
# 💎 ... CONFIG / CONSTS ...
# элемент → атрибут → правило; если пары нет, ищем атрибут в _default
BINDING_MAP: Dict[str, Dict[str, TBindingRule]] = {
    "_default": {
        "textContent": TBindingRule(),
        "title": TBindingRule(),
        "hidden": TBindingRule(internal=True),
        "disabled": TBindingRule(internal=True),
    },
    "a": {
        "href": TBindingRule(),
    },
    "input": {
        "value": TBindingRule(event="change"),
        "checked": TBindingRule(event="change", internal=True),
        "max": TBindingRule(),
        "min": TBindingRule(),
        "step": TBindingRule(),
        "placeholder": TBindingRule(),
    },
    "textarea": {
        "value": TBindingRule(event="change", internal=True),
    },
    "select": {
        "value": TBindingRule(event="change", internal=True),
    },
    "img": {
        "src": TBindingRule(),
    },
    "progress": {
        "max": TBindingRule(),
        "value": TBindingRule(),
    },
    "video": {
        "src": TBindingRule(),
    },
}

IGNORE_MAP = {
    "elements": set(),
    "attributes": {"for"},
}

_TAG = r"@\{[_a-zA-Z0-9]*\}"
# элемент целиком: <x>@{a}</x> или <x ... @{a} ...> (с телом до закрывающего тега или самозакрытый)
ELEMENT_RE = re.compile(rf"<[^<]*>[ \t\n]*{_TAG}[ \t\n]*</[^<]*>|<[^<]*{_TAG}[^<]*(?:>[^>]*</[^<]*>|/?>)")
ELEMENT_TYPE_RE = re.compile(r"^<[a-zA-Z]+[0-9]?")
# attr="@{a}" или >@{a}< (текст элемента)
TAG_RE = re.compile(rf"[a-zA-Z]*=[\"']?{_TAG}|>[ \t\n]*{_TAG}[ \t\n]*<")
ATTR_RE = re.compile(r"[a-zA-Z]+=")
PLACEHOLDER_RE = re.compile(r"@\{([_a-zA-Z0-9]*)\}")
LITERAL_ID_RE = re.compile(r"[ \t\n]+id=", re.IGNORECASE)
# ---
def binding_rule(element_type: str, attribute: str) -> TBindingRule | None:
    rules = BINDING_MAP.get(element_type)
    if rules and attribute in rules:
        return rules[attribute]
    return BINDING_MAP["_default"].get(attribute)
# ---
def new_uid() -> str:
    return "_" + uuid.uuid4().hex
# ---
def render_value(value: Any) -> str:
    """Значение свойства → текст для разметки."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(render_value(v) for v in value)
    if isinstance(value, str):
        return html_lib.escape(value, quote=True)
    return str(value)
# ---
def _host_text(raw: Any) -> str:
    if isinstance(raw, bool):
        return "true" if raw else "false"
    return "" if raw is None else str(raw)
# ----------------------------------------------------------------------------------------------------------------------
# 🧩 Записи разбора
# ----------------------------------------------------------------------------------------------------------------------
@dataclass
class TElementId:
    id: str             # имя ссылки на элемент (плейсхолдер id или сгенерированный id)
    element_id: str     # id элемента в документе хоста


@dataclass
class TElementBinding:
    element_type: str
    attributes: Dict[str, str] = field(default_factory=dict)    # атрибут → свойство (+ "id" → имя ссылки)


@dataclass
class TParseResult:
    html: str
    ids: List[TElementId] = field(default_factory=list)
    elements: List[TElementBinding] = field(default_factory=list)
# ----------------------------------------------------------------------------------------------------------------------
# 🧩 TTemplateBinder — parse() до вставки, bind() после подтверждения вставки
# ----------------------------------------------------------------------------------------------------------------------
class TTemplateBinder:
    """
    Binder без состояния: всё, что ему нужно, он берёт у контрола
    (html, _uid, текущие значения свойств, документ хоста).
    """

    def parse(self, control) -> TParseResult:
        """
        Переписывает разметку контрола:
        - каждому элементу с плейсхолдером — id хоста (сгенерированный или из @{id});
        - internal-атрибуты вырезаются, остальные плейсхолдеры заменяются текущими значениями;
        - возвращает новую разметку + записи для bind().
        """
        source = control.html or ""
        uid = control._uid
        id_map: Dict[str, str] = {}
        elements: List[TElementBinding] = []
        chunks: List[str] = []
        pos = 0

        for m in ELEMENT_RE.finditer(source):
            element_html = m.group(0)
            rewritten = self._parse_element(control, uid, element_html, id_map, elements)
            chunks.append(source[pos:m.start()])
            chunks.append(element_html if rewritten is None else rewritten)
            pos = m.end()
        chunks.append(source[pos:])
        result_html = "".join(chunks)

        ids: List[TElementId] = []
        for name, element_id in id_map.items():
            result_html = result_html.replace(f"@{{{name}}}", element_id)
            ids.append(TElementId(name, element_id))

        return TParseResult(result_html, ids, elements)

    def _parse_element(self, control, uid: str, element_html: str,
                       id_map: Dict[str, str], elements: List[TElementBinding]) -> str | None:
        m = ELEMENT_TYPE_RE.match(element_html)
        if m is None:
            control.warn("parse", EBindingConflict(f"unable to parse element {element_html!r}: element type not set"))
            return None
        element_type = m.group(0)[1:].lower()
        if element_type in IGNORE_MAP["elements"]:
            return None

        data = TElementBinding(element_type)
        tags: List[str] = []
        for t in TAG_RE.finditer(element_html):
            text = t.group(0)
            a = ATTR_RE.search(text)
            attribute = a.group(0)[:-1] if a else "textContent"
            if attribute in IGNORE_MAP["attributes"]:
                continue
            tag = PLACEHOLDER_RE.search(text).group(1)
            tags.append(tag)
            if attribute not in data.attributes:
                data.attributes[attribute] = tag
            else:
                control.warn("parse", EBindingConflict(
                    f"unable to link property {tag!r} to {element_type}.{attribute}: duplicate attribute"))

        rewritten = element_html
        if "id" not in data.attributes:
            if LITERAL_ID_RE.search(element_html):
                control.warn("parse", EBindingConflict(
                    f"unable to link properties to element {element_type!r}: id is not an @{{identifier}} tag"))
                return None
            element_id = f"{uid}_id_{new_uid()}"
            data.attributes["id"] = element_id
            id_map[element_id] = element_id
            rewritten = ELEMENT_TYPE_RE.sub(f'<{element_type} id="{element_id}"', rewritten, count=1)
        elif data.attributes["id"] not in id_map:
            id_map[data.attributes["id"]] = f"{data.attributes['id']}_{uid}"

        for attribute, tag in data.attributes.items():
            rule = binding_rule(element_type, attribute)
            if attribute != "id" and rule is not None and rule.internal:
                rewritten = re.sub(rf"{attribute}=[ \t]*[\"']?@\{{{tag}\}}[\"']?", "", rewritten)

        for tag in dict.fromkeys(tags):
            if tag == data.attributes["id"]:
                continue
            value = control._properties.get(tag) if control.is_property(tag) else None
            if value is not None:
                rewritten = rewritten.replace(f"@{{{tag}}}", render_value(value))

        elements.append(data)
        return rewritten
    # ..................................................................................................................
    # 🔗 Привязки после вставки
    # ..................................................................................................................
    def bind(self, control, parsed: TParseResult):
        document = control.document
        for ref in parsed.ids:
            if ref.id in vars(control) or hasattr(type(control), ref.id):
                control.warn("bind", EBindingConflict(
                    f"unable to create element reference {ref.id!r}: attribute already exists"))
                continue
            element = document.get_element_by_id(ref.element_id)
            if element is None:
                control.warn("bind", EBindingConflict(
                    f"unable to create element reference {ref.id!r}: element not found"))
                continue
            setattr(control, ref.id, element)

        for data in parsed.elements:
            element = vars(control).get(data.attributes.get("id"))
            if element is None:
                continue
            for attribute, prop in data.attributes.items():
                if attribute == "id":
                    continue
                self._bind(control, data.element_type, element, attribute, prop)

    def _bind(self, control, element_type: str, element, attribute: str, prop: str):
        if not control.is_property(prop) or kind_of(control._properties.get(prop)) is None:
            control.warn("bind", EBindingConflict(
                f"unable to bind {element_type}.{attribute} to {prop!r}: not a reactive property"))
            return
        rule = binding_rule(element_type, attribute)
        if rule is None:
            control.warn("bind", EBindingConflict(
                f"unable to bind {element_type}.{attribute} to {prop!r}: unsupported attribute"))
            return
        if rule.internal:
            element.set_prop(attribute, control._properties.get(prop))
        self._link(control, element, attribute, rule.event, prop)

    def _link(self, control, element, attribute: str, event: str | None, prop: str):
        # block1: запись пришла с хоста; block2: запись идёт в хост
        guard = {"block1": False, "block2": False}

        def to_host(value):
            if guard["block1"]:
                return
            guard["block2"] = True
            try:
                element.set_prop(attribute, value)
            finally:
                guard["block2"] = False

        control.on(prop, to_host)

        if not event:
            return

        def from_host(_event):
            if guard["block2"]:
                return
            value = self.coerce(control._properties.get(prop), element.get_prop(attribute))
            if value is None:
                control.warn("bind", EBindingConflict(
                    f"unable to process {_event!r} for {prop!r}: unsupported value or property type"))
                return
            guard["block1"] = True
            try:
                setattr(control, prop, value)
            finally:
                guard["block1"] = False

        element.add_event_listener(event, from_host)

    @staticmethod
    def coerce(current: Any, raw: Any) -> Any:
        """Значение хоста → тип текущего значения свойства (str / float / bool). None — не удалось."""
        text = _host_text(raw)
        if isinstance(current, bool):
            return text == "true"
        if isinstance(current, (int, float)):
            try:
                return float(text)
            except ValueError:
                return None
        if isinstance(current, str):
            return text
        return None
