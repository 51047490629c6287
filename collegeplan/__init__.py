"""College-counseling todo reminder service"""
