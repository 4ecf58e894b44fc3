"""基础设施: 计分与配对、配置管理"""
