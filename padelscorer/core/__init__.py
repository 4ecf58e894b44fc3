"""计分会话核心: 数据模型、会话、快照、名单与报表"""
