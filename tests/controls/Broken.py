# 🧪 Broken — модуль падает при исполнении
from mu_ctrl_custom import TControl

raise RuntimeError("broken on purpose")
