"""
飞书协作套件工具

把飞书日历、视频会议、消息流卡片、消息加急和机器人探测
封装为可供大模型调用的工具。
"""
