"""
Guild activity monitoring: the message-rate counter, the periodic
statistics snapshot task and the statistics summary read by the API.
"""
