from amrcollect.cli import main

raise SystemExit(main())
