"""服务模块：配置管理、检查任务、更新通道、报告与调度"""
