"""Templating: deployment-time config substitution.

    html      -- replace the text of one marker element in an HTML page
    json_env  -- substitute a flat JSON config from environment variables
    spa_cfg   -- the two combined into the engines the loader applies
"""
