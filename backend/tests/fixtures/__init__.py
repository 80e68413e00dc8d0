"""
Shared test models, resources and panel providers
"""
