# 🧪 Extra — вторая независимая база
from mu_ctrl_custom import TControl, TProperty
from mu_registry import register_control


class Extra(TControl):
    extra = TProperty(False)


register_control(Extra)
