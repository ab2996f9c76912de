from django.urls import path

from . import views

urlpatterns = [
    path('api/quizzes/<uuid:quiz_id>/', views.quiz_detail, name='quiz_detail'),
    path('api/quizzes/<uuid:quiz_id>/active-questions/', views.quiz_active_questions, name='quiz_active_questions'),
    path('api/quizzes/<uuid:quiz_id>/submit/', views.quiz_submit, name='quiz_submit'),
    path('api/quizzes/<uuid:quiz_id>/submit/retry/', views.quiz_submit_retry, name='quiz_submit_retry'),
    path('api/quizzes/<uuid:quiz_id>/validation/', views.quiz_validation, name='quiz_validation'),
    path('api/results/<uuid:result_id>/unlock/', views.result_unlock, name='result_unlock'),
    path('api/results/<uuid:result_id>/rows/', views.result_rows, name='result_rows'),
    path('api/analytics/', views.analytics_summary, name='analytics_summary'),
    path('lang/<str:lang>/', views.toggle_language, name='toggle_language'),
]
