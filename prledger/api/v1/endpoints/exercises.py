"""Exercise and user endpoints (just enough to own lift logs)."""

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from prledger.db.session import get_db
from prledger.models.exercise import Exercise
from prledger.models.user import User
from prledger.schemas.exercise import ExerciseCreate, ExerciseRead, UserCreate, UserRead

router = APIRouter()


@router.get("/exercises", response_model=list[ExerciseRead])
async def list_exercises(
    db: AsyncSession = Depends(get_db),
    skip: int = 0,
    limit: int = 100,
):
    """List exercises with optional pagination."""
    result = await db.execute(select(Exercise).order_by(Exercise.name).offset(skip).limit(limit))
    return list(result.scalars().all())


@router.post("/exercises", response_model=ExerciseRead, status_code=201)
async def create_exercise(
    payload: ExerciseCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create an exercise; modality decides which records it can set."""
    exercise = Exercise(**payload.model_dump())
    db.add(exercise)
    await db.flush()
    await db.refresh(exercise)
    return exercise


@router.get("/exercises/{exercise_id}", response_model=ExerciseRead)
async def get_exercise(
    exercise_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    exercise = await db.get(Exercise, exercise_id)
    if not exercise:
        raise HTTPException(status_code=404, detail="Exercise not found")
    return exercise


@router.post("/users", response_model=UserRead, status_code=201)
async def create_user(
    payload: UserCreate,
    db: AsyncSession = Depends(get_db),
):
    user = User(name=payload.name)
    db.add(user)
    await db.flush()
    await db.refresh(user)
    return user
