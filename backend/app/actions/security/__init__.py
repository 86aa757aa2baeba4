"""security/* 动作"""
