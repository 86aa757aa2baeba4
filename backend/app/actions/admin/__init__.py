"""admin/* 动作（仅管理员）"""
