"""
Site widgets

- blog: article list, newest first, grouped by year
- now: "now" page blocks (reading / listening)
- mars: Coordinated Mars Time clock and daylight line
- ipmagic: public IP lookup with octet-sum trivia
- coffee: ASCII mug with cycling steam

Entry point:
    python -m widgets.service all
"""
