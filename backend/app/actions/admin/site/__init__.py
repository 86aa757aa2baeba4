"""admin/site/* 动作"""
