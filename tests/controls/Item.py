# 🧪 Item — сортируемый элемент списка
from mu_ctrl_custom import TControl, TProperty
from mu_registry import register_control


class Item(TControl):
    rank = TProperty(0)
    label = TProperty("")
    tags = TProperty([])
    html = '<div id="@{_mainDiv}"><b>@{label}</b><div id="@{_controlsDiv}"></div></div>'


register_control(Item)
