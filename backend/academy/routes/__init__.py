"""
Football Academy Backend — API Routes Package
===============================================

Route Inventory:
    - auth.py:           /api/auth/*            (login, refresh, me, password)
    - users.py:          /api/users/*           (admin account management)
    - teams.py:          /api/teams/*           (teams, rosters, coach assignment)
    - players.py:        /api/players/*         (players, parent links, photos)
    - trainings.py:      /api/trainings/*       (sessions and attendance)
    - checkin.py:        /api/checkin/*         (QR codes and check-in)
    - matches.py:        /api/matches/*         (fixtures, scores, events, stats)
    - billing.py:        /api/billing/*         (plans, invoices, payments, reports)
    - announcements.py:  /api/announcements/*   (academy and team notices)
    - messages.py:       /api/messages/*        (conversations, broadcasts, unread)
    - injuries.py:       /api/injuries/*        (injury log, recovery, treatments)
    - development_plans.py: /api/development-plans/* (season plans, progress, review)
    - profile.py:        /api/profile           (own account and password)
    - dashboard.py:      /api/dashboard, /api/notifications/upcoming
    - health.py:         /health

Routes stay thin: parse the request, call a service, shape the response.
Role checks and business rules live in services.
"""
