"""
Config — loading service definitions from service.yml.
"""
