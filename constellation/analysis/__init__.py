"""場景分析（統計資訊）"""

from .stats import SceneStatistics, buildGraph, computeStatistics, starTable

__all__ = ['SceneStatistics', 'buildGraph', 'computeStatistics', 'starTable']
