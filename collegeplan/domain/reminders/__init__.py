"""Reminders domain - todo reminder emails and reminder address management"""
