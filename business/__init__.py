"""业务层：经营分析、资产组合与自定义字段校验"""
