"""Price recommendation system.

Main pipeline: pipeline.RMSPipeline
"""
from .pipeline import DashboardResult, RMSPipeline

__all__ = ['RMSPipeline', 'DashboardResult']
