"""
formgrid - 表单网格布局压缩与片段组合核心

模块结构：
- config/       布局参数与命名规则加载
- models/       数据模型定义
- layout/       坐标编解码/行压缩/跨列/表格装配/片段排序/可见性
- pipeline/     流水线编排
- diagnostics   诊断事件收集
"""

__version__ = "0.1.0"
