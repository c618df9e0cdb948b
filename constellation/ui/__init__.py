"""使用者介面"""
