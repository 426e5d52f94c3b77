# 🧪 Pair — две прямые базы
from mu_registry import register_control, control_class


class Pair(control_class("BaseB"), control_class("Extra")):
    pass


register_control(Pair)
