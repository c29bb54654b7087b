"""DailyHire API - marketplace backend connecting hirers with daily-wage workers"""
