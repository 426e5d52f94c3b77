# 🧪 TextLabel — текст + подсказка, один span
from mu_ctrl_custom import TControl, TProperty
from mu_registry import register_control


class TextLabel(TControl):
    text = TProperty("")
    tooltip = TProperty("")
    html = ('<div id="@{_mainDiv}"><span id="@{_label}" title="@{tooltip}">@{text}</span>'
            '<div id="@{_controlsDiv}"></div></div>')


register_control(TextLabel)
