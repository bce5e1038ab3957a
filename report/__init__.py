"""
Report package: render metric snapshots as text, Markdown, CSV, JSON or HTML.
"""
