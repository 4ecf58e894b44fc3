"""padelscorer: 板式网球（Padel）社交赛计分与轮次配对"""

__version__ = "0.1.0"
