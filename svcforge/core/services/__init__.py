"""
Services — path resolution, templating, file materialization, descriptor
parsing, consistency validation and deploy-time binding recovery.
"""
